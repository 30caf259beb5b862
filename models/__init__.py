from models.User import User
from models.WasteReport import WasteReport
from models.Donation import Donation
from models.Event import Event
from models.EventParticipant import EventParticipant
from models.MediaContent import MediaContent
from models.Issue import Issue
from models.Feedback import Feedback
from models.HelpRequest import HelpRequest

__all__ = [
    "User",
    "WasteReport",
    "Donation",
    "Event",
    "EventParticipant",
    "MediaContent",
    "Issue",
    "Feedback",
    "HelpRequest",
]
