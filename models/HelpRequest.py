from extensions import db
from storage.base import utcnow


class HelpRequest(db.Model):
    __tablename__ = "help_requests"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    help_type = db.Column(db.String(50), nullable=False)
    location = db.Column(db.JSON, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="pending")
    scheduled_date = db.Column(db.DateTime, nullable=True)
    max_participants = db.Column(db.Integer, nullable=True)
    skills = db.Column(db.JSON, nullable=False, default=list)
    is_urgent = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    requester = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "help_type": self.help_type,
            "location": self.location,
            "status": self.status,
            "scheduled_date": self.scheduled_date,
            "max_participants": self.max_participants,
            "skills": list(self.skills or []),
            "is_urgent": self.is_urgent,
            "created_at": self.created_at,
        }
