"""Shared test fixtures for the Fluxx Sales test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite for both stores, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: an agent, accounts, pending sales orders
"""

import pytest
from werkzeug.security import generate_password_hash

from fluxx import create_app
from fluxx.extensions import db as _db
from fluxx.models.user import User
from fluxx.models.account import Account
from fluxx.models.sales_order import PendingSalesOrder


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables on both binds before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def login(client):
    """Log in through the real login form."""

    def _login(email="agent@fluxx.test", password="agentpass123", department=""):
        return client.post(
            "/auth/login",
            data={"email": email, "password": password, "department": department},
            follow_redirects=False,
        )

    return _login


@pytest.fixture
def seed_data(app, db_session):
    """Seed an agent (credential store) plus accounts and sales orders.

    Returns a dict of plain values so tests can use them across contexts.
    """
    agent = User(
        email="agent@fluxx.test",
        password_hash=generate_password_hash("agentpass123"),
        firstname="Ana",
        lastname="Cruz",
        role="Territory Sales Associate",
        department="Sales",
        reference_id="AC-001",
        manager="MGR-01",
        tsm="TSM-07",
    )
    _db.session.add(agent)

    accounts = [
        Account(reference_id="AC-001", company_name="Acme Trading", status="Active"),
        Account(reference_id="AC-001", company_name="Bayside Hardware", status="Used"),
        Account(reference_id="AC-001", company_name="Closed Corp", status="Inactive"),
        Account(reference_id="ZZ-999", company_name="Someone Else Inc", status="Active"),
    ]
    _db.session.add_all(accounts)

    orders = [
        PendingSalesOrder(
            reference_id="AC-001",
            date_created="2024-03-01T09:15:00Z",
            company_name="acme trading",
            contact_person="juan dela cruz",
            so_number="SO-1001",
            so_amount="1500.50",
            activity_status="SO-Done",
            remarks="for delivery",
        ),
        PendingSalesOrder(
            reference_id="AC-001",
            date_created="2024-03-15T14:00:00Z",
            company_name="bayside hardware",
            contact_person="maria santos",
            so_number="SO-1002",
            so_amount="98000",
            activity_status="Pending",
            remarks=None,
        ),
        PendingSalesOrder(
            reference_id="AC-001",
            date_created="not a date",
            company_name="mystery co",
            contact_person="pedro",
            so_number="SO-1003",
            so_amount="n/a",
            activity_status="Pending",
            remarks="check",
        ),
    ]
    _db.session.add_all(orders)
    _db.session.commit()

    return {
        "agent": agent,
        "agent_id": agent.id,
        "agent_email": agent.email,
        "agent_password": "agentpass123",
        "reference_id": "AC-001",
    }
