from extensions import db
from storage.base import utcnow


class EventParticipant(db.Model):
    __tablename__ = "event_participants"
    __table_args__ = (
        db.UniqueConstraint("event_id", "user_id", name="uq_event_participant"),
    )

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    joined_at = db.Column(db.DateTime, default=utcnow)

    event = db.relationship("Event", back_populates="participants")
    user = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "user_id": self.user_id,
            "joined_at": self.joined_at,
        }
