from extensions import db
from storage.base import utcnow


class Issue(db.Model):
    __tablename__ = "issues"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    issue_type = db.Column(db.String(50), nullable=False)
    location = db.Column(db.JSON, nullable=False)
    images = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    is_urgent = db.Column(db.Boolean, nullable=False, default=False)
    request_community_help = db.Column(db.Boolean, nullable=False, default=False)
    assigned_organization_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    reporter = db.relationship("User", foreign_keys=[user_id])
    organization = db.relationship("User", foreign_keys=[assigned_organization_id])

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "issue_type": self.issue_type,
            "location": self.location,
            "images": list(self.images or []),
            "status": self.status,
            "is_urgent": self.is_urgent,
            "request_community_help": self.request_community_help,
            "assigned_organization_id": self.assigned_organization_id,
            "created_at": self.created_at,
        }
