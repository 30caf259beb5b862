from abc import ABC, abstractmethod
from datetime import datetime, timezone

from storage.analytics import compute_environmental_impact, compute_stats, rank_leaderboard


def utcnow():
    """Current time as a naive UTC datetime, the form every record stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class StorageError(Exception):
    pass


class IntegrityViolation(StorageError):
    """A record references a user (or event) that does not exist."""


class DuplicateEntry(StorageError):
    pass


class StorageUnavailable(StorageError):
    """The backing database could not be reached."""


USER_REFERENCE_FIELDS = (
    "user_id",
    "organizer_id",
    "author_id",
    "assigned_dealer_id",
    "requested_by_organization_id",
    "assigned_organization_id",
    "assigned_to_id",
)

DEFAULTS = {
    "user": {"phone": "", "address": {}, "role": "customer", "social_points": 0},
    "waste_report": {
        "images": [],
        "status": "pending",
        "is_segregated": False,
        "waste_category": "other",
        "assigned_dealer_id": None,
        "scheduled_date": None,
        "completed_at": None,
    },
    "donation": {"images": [], "status": "available", "requested_by_organization_id": None},
    "event": {"status": "upcoming", "max_participants": None, "image": None},
    "media_content": {"author_id": None, "tags": [], "published": True},
    "issue": {
        "images": [],
        "status": "pending",
        "is_urgent": False,
        "request_community_help": False,
        "assigned_organization_id": None,
    },
    "feedback": {"status": "unread", "assigned_to_id": None},
    "help_request": {
        "status": "pending",
        "scheduled_date": None,
        "max_participants": None,
        "skills": [],
        "is_urgent": False,
    },
}


def with_defaults(kind, data):
    record = {key: (list(value) if isinstance(value, list) else value)
              for key, value in DEFAULTS[kind].items()}
    record.update(data)
    return record


class Storage(ABC):
    """Data access contract shared by the in-memory and database stores.

    Every getter returns ``None`` (or an empty list) on a miss instead of
    raising. Updates return ``None`` when the id does not exist. Records
    are plain dicts and are copies of what the store holds.
    """

    # Users

    @abstractmethod
    def get_user(self, user_id): ...

    @abstractmethod
    def get_user_by_username(self, username): ...

    @abstractmethod
    def get_user_by_email(self, email): ...

    @abstractmethod
    def create_user(self, data): ...

    @abstractmethod
    def update_user(self, user_id, changes): ...

    @abstractmethod
    def get_users_by_role(self, role): ...

    @abstractmethod
    def get_all_users(self): ...

    @abstractmethod
    def add_social_points(self, user_id, points): ...

    # Waste reports

    @abstractmethod
    def create_waste_report(self, data): ...

    @abstractmethod
    def get_waste_report(self, report_id): ...

    @abstractmethod
    def get_waste_reports_by_user_id(self, user_id): ...

    @abstractmethod
    def get_waste_reports_by_status(self, status): ...

    @abstractmethod
    def get_waste_reports_by_dealer_id(self, dealer_id): ...

    @abstractmethod
    def get_all_waste_reports(self): ...

    @abstractmethod
    def update_waste_report(self, report_id, changes): ...

    # Donations

    @abstractmethod
    def create_donation(self, data): ...

    @abstractmethod
    def get_donation(self, donation_id): ...

    @abstractmethod
    def get_donations_by_user_id(self, user_id): ...

    @abstractmethod
    def get_available_donations(self): ...

    @abstractmethod
    def get_donations_by_organization_id(self, organization_id): ...

    @abstractmethod
    def get_all_donations(self): ...

    @abstractmethod
    def update_donation(self, donation_id, changes): ...

    # Events

    @abstractmethod
    def create_event(self, data): ...

    @abstractmethod
    def get_event(self, event_id): ...

    @abstractmethod
    def get_events_by_organizer_id(self, organizer_id): ...

    @abstractmethod
    def get_upcoming_events(self, now=None): ...

    @abstractmethod
    def get_all_events(self): ...

    @abstractmethod
    def update_event(self, event_id, changes): ...

    # Event participants

    @abstractmethod
    def add_event_participant(self, event_id, user_id): ...

    @abstractmethod
    def get_event_participants(self, event_id): ...

    @abstractmethod
    def count_event_participants(self, event_id): ...

    @abstractmethod
    def is_user_participating(self, event_id, user_id): ...

    @abstractmethod
    def remove_event_participant(self, event_id, user_id): ...

    # Media content

    @abstractmethod
    def create_media_content(self, data): ...

    @abstractmethod
    def get_media_content(self, content_id): ...

    @abstractmethod
    def get_all_media_content(self): ...

    @abstractmethod
    def get_media_content_by_type(self, content_type): ...

    # Issues

    @abstractmethod
    def create_issue(self, data): ...

    @abstractmethod
    def get_issue(self, issue_id): ...

    @abstractmethod
    def get_issues_by_user_id(self, user_id): ...

    @abstractmethod
    def get_issues_by_status(self, status): ...

    @abstractmethod
    def get_all_issues(self): ...

    @abstractmethod
    def update_issue(self, issue_id, changes): ...

    def assign_issue_to_organization(self, issue_id, organization_id):
        return self.update_issue(
            issue_id, {"assigned_organization_id": organization_id, "status": "assigned"}
        )

    # Feedback

    @abstractmethod
    def create_feedback(self, data): ...

    @abstractmethod
    def get_feedback(self, feedback_id): ...

    @abstractmethod
    def get_feedback_by_user_id(self, user_id): ...

    @abstractmethod
    def get_all_feedback(self): ...

    @abstractmethod
    def update_feedback(self, feedback_id, changes): ...

    def assign_feedback_to_user(self, feedback_id, user_id):
        return self.update_feedback(feedback_id, {"assigned_to_id": user_id})

    # Help requests

    @abstractmethod
    def create_help_request(self, data): ...

    @abstractmethod
    def get_help_request(self, request_id): ...

    @abstractmethod
    def get_help_requests_by_user_id(self, user_id): ...

    @abstractmethod
    def get_all_help_requests(self): ...

    @abstractmethod
    def update_help_request(self, request_id, changes): ...

    # Units of work

    @abstractmethod
    def transaction(self):
        """Context manager; every mutation inside is undone if the block raises."""

    # Analytics

    def get_stats(self):
        return compute_stats(
            self.get_all_waste_reports(),
            self.get_all_donations(),
            self.get_all_events(),
            self.get_all_users(),
        )

    def get_environmental_impact(self, now=None):
        return compute_environmental_impact(
            self.get_all_waste_reports(),
            self.get_all_donations(),
            self.get_all_events(),
            now or utcnow(),
        )

    def get_leaderboard(self, limit=10):
        return rank_leaderboard(self.get_all_users(), limit)

    # Helpers

    def check_user_references(self, data):
        for field in USER_REFERENCE_FIELDS:
            user_id = data.get(field)
            if user_id is not None and self.get_user(user_id) is None:
                raise IntegrityViolation(f"{field} references unknown user {user_id}")
