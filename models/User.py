from extensions import db
from storage.base import utcnow


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(32), nullable=False, default="")
    address = db.Column(db.JSON, nullable=False, default=dict)
    role = db.Column(db.String(20), nullable=False, default="customer")
    social_points = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utcnow)

    waste_reports = db.relationship(
        "WasteReport", back_populates="reporter", foreign_keys="WasteReport.user_id"
    )
    assigned_pickups = db.relationship(
        "WasteReport", back_populates="dealer", foreign_keys="WasteReport.assigned_dealer_id"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "password_hash": self.password_hash,
            "full_name": self.full_name,
            "phone": self.phone,
            "address": self.address,
            "role": self.role,
            "social_points": self.social_points,
            "created_at": self.created_at,
        }
