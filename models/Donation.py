from extensions import db
from storage.base import utcnow


class Donation(db.Model):
    __tablename__ = "donations"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    item_name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(30), nullable=False)
    images = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(20), nullable=False, default="available", index=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    requested_by_organization_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=True, index=True
    )

    donor = db.relationship("User", foreign_keys=[user_id])
    organization = db.relationship("User", foreign_keys=[requested_by_organization_id])

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "item_name": self.item_name,
            "description": self.description,
            "category": self.category,
            "images": list(self.images or []),
            "status": self.status,
            "requested_by_organization_id": self.requested_by_organization_id,
            "created_at": self.created_at,
        }
