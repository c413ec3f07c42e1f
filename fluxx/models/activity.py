"""Activity log entry.

One row per submitted activity form. Never updated after insert.
"""

from fluxx.extensions import db


class Activity(db.Model):
    __tablename__ = "activities"

    id = db.Column(db.Integer, primary_key=True)
    reference_id = db.Column(db.String(64), nullable=False, index=True)
    manager = db.Column(db.String(64))
    tsm = db.Column(db.String(64))
    activity_status = db.Column(db.String(80), nullable=False)
    activity_remarks = db.Column(db.Text, nullable=False)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    selfie_url = db.Column(db.Text)
    date_created = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def to_dict(self):
        return {
            "id": self.id,
            "referenceid": self.reference_id,
            "manager": self.manager,
            "tsm": self.tsm,
            "activitystatus": self.activity_status,
            "activityremarks": self.activity_remarks,
            "startdate": self.start_date.isoformat(),
            "enddate": self.end_date.isoformat(),
            "selfieUrl": self.selfie_url,
        }

    def __repr__(self):
        return f"<Activity {self.reference_id} {self.activity_status}>"
