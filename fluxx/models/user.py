"""User model.

Lives in the credential store (the "credentials" bind), separate from the
relational store that holds accounts and activities.
Flask-Login integration via UserMixin.
"""

import uuid

from flask_login import UserMixin

from fluxx.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"
    __bind_key__ = "credentials"

    ROLES = ["Admin", "Manager", "Territory Sales Manager", "Territory Sales Associate"]

    DEPARTMENTS = ["Sales", "Admin", "IT", "Accounting", "Warehouse"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    firstname = db.Column(db.String(120), nullable=False)
    lastname = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    role = db.Column(db.String(80))
    department = db.Column(db.String(80))
    reference_id = db.Column(db.String(64), index=True)
    # Supervisor links, carried onto every activity the user logs.
    manager = db.Column(db.String(64))
    tsm = db.Column(db.String(64))
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    @property
    def full_name(self):
        return f"{self.firstname} {self.lastname}".strip()

    def to_dict(self):
        """Public profile. Never includes the password hash."""
        return {
            "id": self.id,
            "firstname": self.firstname,
            "lastname": self.lastname,
            "email": self.email,
            "role": self.role,
            "department": self.department,
            "reference_id": self.reference_id,
            "manager": self.manager,
            "tsm": self.tsm,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.email}>"
