"""Company account owned by a sales agent (relational store).

Read-only from this application; rows are maintained by the CRM import.
"""

from fluxx.extensions import db


class Account(db.Model):
    __tablename__ = "accounts"

    INACTIVE = "Inactive"

    id = db.Column(db.Integer, primary_key=True)
    reference_id = db.Column(db.String(64), nullable=False, index=True)
    company_name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255))
    contact_number = db.Column(db.String(64))
    email_address = db.Column(db.String(255))
    type_client = db.Column(db.String(80))
    address = db.Column(db.Text)
    status = db.Column(
        db.String(50), default="Active", nullable=False
    )  # Active | Inactive | ...
    date_created = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def to_dict(self):
        return {
            "id": self.id,
            "referenceid": self.reference_id,
            "companyname": self.company_name,
            "contactperson": self.contact_person,
            "contactnumber": self.contact_number,
            "emailaddress": self.email_address,
            "typeclient": self.type_client,
            "address": self.address,
            "status": self.status,
            "date_created": self.date_created.isoformat() if self.date_created else None,
        }

    def __repr__(self):
        return f"<Account {self.company_name} ({self.status})>"
