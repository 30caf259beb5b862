from extensions import db
from storage.base import utcnow


class WasteReport(db.Model):
    __tablename__ = "waste_reports"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.JSON, nullable=False)
    images = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    is_segregated = db.Column(db.Boolean, nullable=False, default=False)
    waste_category = db.Column(db.String(20), nullable=False, default="other")
    created_at = db.Column(db.DateTime, default=utcnow)

    # Dealer who accepted the pickup
    assigned_dealer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    scheduled_date = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)

    reporter = db.relationship("User", back_populates="waste_reports", foreign_keys=[user_id])
    dealer = db.relationship("User", back_populates="assigned_pickups", foreign_keys=[assigned_dealer_id])

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "images": list(self.images or []),
            "status": self.status,
            "is_segregated": self.is_segregated,
            "waste_category": self.waste_category,
            "assigned_dealer_id": self.assigned_dealer_id,
            "scheduled_date": self.scheduled_date,
            "completed_at": self.completed_at,
            "created_at": self.created_at,
        }
