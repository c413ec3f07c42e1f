"""Pending sales order (relational store).

Display-only: the reports page lists these, nothing here writes them.
"""

from fluxx.extensions import db


class PendingSalesOrder(db.Model):
    __tablename__ = "pending_sales_orders"

    id = db.Column(db.Integer, primary_key=True)
    reference_id = db.Column(db.String(64), nullable=False, index=True)
    # Kept as text: upstream exports are not always valid dates.
    date_created = db.Column(db.String(64))
    company_name = db.Column(db.String(255))
    contact_person = db.Column(db.String(255))
    so_number = db.Column(db.String(64))
    # Kept as text for the same reason; report_service coerces for sorting.
    so_amount = db.Column(db.String(64))
    activity_status = db.Column(db.String(50))  # SO-Done | Pending | ...
    remarks = db.Column(db.Text)

    def to_dict(self):
        return {
            "id": self.id,
            "date_created": self.date_created,
            "companyname": self.company_name,
            "contactperson": self.contact_person,
            "sonumber": self.so_number,
            "soamount": self.so_amount,
            "activitystatus": self.activity_status,
            "remarks": self.remarks,
        }

    def __repr__(self):
        return f"<PendingSalesOrder {self.so_number}>"
