"""Account and user lookups for the JSON API.

Thin query helpers: each is scoped to one owner reference id and returns
plain lists/objects. Empty results are the caller's concern (404 vs 200).
"""

from fluxx.extensions import db
from fluxx.models.account import Account
from fluxx.models.sales_order import PendingSalesOrder
from fluxx.models.user import User


def fetch_active_accounts(reference_id):
    """Accounts owned by reference_id whose status is not Inactive."""
    return (
        Account.query
        .filter(Account.reference_id == reference_id)
        .filter(Account.status != Account.INACTIVE)
        .order_by(Account.company_name)
        .all()
    )


def fetch_pending_sales_orders(reference_id):
    """All pending sales orders for an agent, in insertion order."""
    return (
        PendingSalesOrder.query
        .filter_by(reference_id=reference_id)
        .order_by(PendingSalesOrder.id)
        .all()
    )


def get_user(user_id):
    return db.session.get(User, user_id)
