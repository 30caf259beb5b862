from extensions import db
from storage.base import utcnow


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    organizer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.JSON, nullable=False)
    date = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="upcoming")
    max_participants = db.Column(db.Integer, nullable=True)
    image = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    organizer = db.relationship("User", foreign_keys=[organizer_id])
    participants = db.relationship(
        "EventParticipant", back_populates="event", cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "organizer_id": self.organizer_id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "date": self.date,
            "status": self.status,
            "max_participants": self.max_participants,
            "image": self.image,
            "created_at": self.created_at,
        }
