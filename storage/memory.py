import copy
import logging
import threading
from contextlib import contextmanager
from functools import wraps

from storage.base import DuplicateEntry, IntegrityViolation, Storage, utcnow, with_defaults

logger = logging.getLogger(__name__)


class Table:
    """Rows of one entity type keyed by a sequential integer id."""

    def __init__(self, name):
        self.name = name
        self.rows = {}
        self.next_id = 1

    def insert(self, record):
        record["id"] = self.next_id
        self.next_id += 1
        self.rows[record["id"]] = record
        return copy.deepcopy(record)

    def get(self, row_id):
        row = self.rows.get(row_id)
        return copy.deepcopy(row) if row is not None else None

    def filter(self, predicate=None):
        return [copy.deepcopy(row) for row in self.rows.values()
                if predicate is None or predicate(row)]

    def find(self, predicate):
        for row in self.rows.values():
            if predicate(row):
                return copy.deepcopy(row)
        return None

    def update(self, row_id, changes):
        row = self.rows.get(row_id)
        if row is None:
            return None
        row.update(copy.deepcopy(changes))
        return copy.deepcopy(row)

    def delete(self, row_id):
        return self.rows.pop(row_id, None) is not None


def locked(method):
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class MemStorage(Storage):
    """Process-local store used for tests and throwaway demo instances."""

    def __init__(self):
        self._lock = threading.RLock()
        self._depth = 0
        self.users = Table("users")
        self.waste_reports = Table("waste_reports")
        self.donations = Table("donations")
        self.events = Table("events")
        self.event_participants = Table("event_participants")
        self.media_content = Table("media_content")
        self.issues = Table("issues")
        self.feedback = Table("feedback")
        self.help_requests = Table("help_requests")

    def _tables(self):
        return [value for value in vars(self).values() if isinstance(value, Table)]

    def _insert(self, table, kind, data):
        record = with_defaults(kind, copy.deepcopy(data))
        self.check_user_references(record)
        record["created_at"] = utcnow()
        return table.insert(record)

    def _update(self, table, row_id, changes):
        if table.get(row_id) is None:
            return None
        self.check_user_references(changes)
        return table.update(row_id, changes)

    @contextmanager
    def transaction(self):
        with self._lock:
            outermost = self._depth == 0
            snapshot = {t.name: copy.deepcopy(t.rows) for t in self._tables()} if outermost else None
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    # ids handed out inside the block stay consumed
                    for table in self._tables():
                        table.rows = snapshot[table.name]
                    logger.info("Rolled back in-memory transaction")
                raise
            finally:
                self._depth -= 1

    # Users

    @locked
    def get_user(self, user_id):
        return self.users.get(user_id)

    @locked
    def get_user_by_username(self, username):
        wanted = username.lower()
        return self.users.find(lambda u: u["username"].lower() == wanted)

    @locked
    def get_user_by_email(self, email):
        wanted = email.lower()
        return self.users.find(lambda u: u["email"].lower() == wanted)

    @locked
    def create_user(self, data):
        if self.get_user_by_username(data["username"]):
            raise DuplicateEntry("Username already taken")
        if self.get_user_by_email(data["email"]):
            raise DuplicateEntry("Email already registered")
        return self._insert(self.users, "user", data)

    @locked
    def update_user(self, user_id, changes):
        return self._update(self.users, user_id, changes)

    @locked
    def get_users_by_role(self, role):
        return self.users.filter(lambda u: u["role"] == role)

    @locked
    def get_all_users(self):
        return self.users.filter()

    @locked
    def add_social_points(self, user_id, points):
        if points < 0:
            raise ValueError("Social points can only be added")
        user = self.users.rows.get(user_id)
        if user is None:
            return None
        return self.users.update(user_id, {"social_points": (user["social_points"] or 0) + points})

    # Waste reports

    @locked
    def create_waste_report(self, data):
        return self._insert(self.waste_reports, "waste_report", data)

    @locked
    def get_waste_report(self, report_id):
        return self.waste_reports.get(report_id)

    @locked
    def get_waste_reports_by_user_id(self, user_id):
        return self.waste_reports.filter(lambda r: r["user_id"] == user_id)

    @locked
    def get_waste_reports_by_status(self, status):
        return self.waste_reports.filter(lambda r: r["status"] == status)

    @locked
    def get_waste_reports_by_dealer_id(self, dealer_id):
        return self.waste_reports.filter(lambda r: r["assigned_dealer_id"] == dealer_id)

    @locked
    def get_all_waste_reports(self):
        return self.waste_reports.filter()

    @locked
    def update_waste_report(self, report_id, changes):
        return self._update(self.waste_reports, report_id, changes)

    # Donations

    @locked
    def create_donation(self, data):
        return self._insert(self.donations, "donation", data)

    @locked
    def get_donation(self, donation_id):
        return self.donations.get(donation_id)

    @locked
    def get_donations_by_user_id(self, user_id):
        return self.donations.filter(lambda d: d["user_id"] == user_id)

    @locked
    def get_available_donations(self):
        return self.donations.filter(lambda d: d["status"] == "available")

    @locked
    def get_donations_by_organization_id(self, organization_id):
        return self.donations.filter(
            lambda d: d["requested_by_organization_id"] == organization_id
        )

    @locked
    def get_all_donations(self):
        return self.donations.filter()

    @locked
    def update_donation(self, donation_id, changes):
        return self._update(self.donations, donation_id, changes)

    # Events

    @locked
    def create_event(self, data):
        return self._insert(self.events, "event", data)

    @locked
    def get_event(self, event_id):
        return self.events.get(event_id)

    @locked
    def get_events_by_organizer_id(self, organizer_id):
        return self.events.filter(lambda e: e["organizer_id"] == organizer_id)

    @locked
    def get_upcoming_events(self, now=None):
        now = now or utcnow()
        return self.events.filter(lambda e: e["status"] == "upcoming" and e["date"] > now)

    @locked
    def get_all_events(self):
        return self.events.filter()

    @locked
    def update_event(self, event_id, changes):
        return self._update(self.events, event_id, changes)

    # Event participants

    @locked
    def add_event_participant(self, event_id, user_id):
        if self.events.get(event_id) is None:
            raise IntegrityViolation(f"event_id references unknown event {event_id}")
        if self.is_user_participating(event_id, user_id):
            raise DuplicateEntry("Already registered for this event")
        record = {"event_id": event_id, "user_id": user_id}
        self.check_user_references(record)
        record["joined_at"] = utcnow()
        return self.event_participants.insert(record)

    @locked
    def get_event_participants(self, event_id):
        rows = self.event_participants.filter(lambda p: p["event_id"] == event_id)
        users = (self.users.get(p["user_id"]) for p in rows)
        return [u for u in users if u is not None]

    @locked
    def count_event_participants(self, event_id):
        return sum(1 for p in self.event_participants.rows.values() if p["event_id"] == event_id)

    @locked
    def is_user_participating(self, event_id, user_id):
        return any(
            p["event_id"] == event_id and p["user_id"] == user_id
            for p in self.event_participants.rows.values()
        )

    @locked
    def remove_event_participant(self, event_id, user_id):
        match = self.event_participants.find(
            lambda p: p["event_id"] == event_id and p["user_id"] == user_id
        )
        if match is None:
            return False
        return self.event_participants.delete(match["id"])

    # Media content

    @locked
    def create_media_content(self, data):
        return self._insert(self.media_content, "media_content", data)

    @locked
    def get_media_content(self, content_id):
        return self.media_content.get(content_id)

    @locked
    def get_all_media_content(self):
        return self.media_content.filter(lambda m: m["published"])

    @locked
    def get_media_content_by_type(self, content_type):
        return self.media_content.filter(
            lambda m: m["published"] and m["content_type"] == content_type
        )

    # Issues

    @locked
    def create_issue(self, data):
        return self._insert(self.issues, "issue", data)

    @locked
    def get_issue(self, issue_id):
        return self.issues.get(issue_id)

    @locked
    def get_issues_by_user_id(self, user_id):
        return self.issues.filter(lambda i: i["user_id"] == user_id)

    @locked
    def get_issues_by_status(self, status):
        return self.issues.filter(lambda i: i["status"] == status)

    @locked
    def get_all_issues(self):
        return self.issues.filter()

    @locked
    def update_issue(self, issue_id, changes):
        return self._update(self.issues, issue_id, changes)

    # Feedback

    @locked
    def create_feedback(self, data):
        return self._insert(self.feedback, "feedback", data)

    @locked
    def get_feedback(self, feedback_id):
        return self.feedback.get(feedback_id)

    @locked
    def get_feedback_by_user_id(self, user_id):
        return self.feedback.filter(lambda f: f["user_id"] == user_id)

    @locked
    def get_all_feedback(self):
        return self.feedback.filter()

    @locked
    def update_feedback(self, feedback_id, changes):
        return self._update(self.feedback, feedback_id, changes)

    # Help requests

    @locked
    def create_help_request(self, data):
        return self._insert(self.help_requests, "help_request", data)

    @locked
    def get_help_request(self, request_id):
        return self.help_requests.get(request_id)

    @locked
    def get_help_requests_by_user_id(self, user_id):
        return self.help_requests.filter(lambda h: h["user_id"] == user_id)

    @locked
    def get_all_help_requests(self):
        return self.help_requests.filter()

    @locked
    def update_help_request(self, request_id, changes):
        return self._update(self.help_requests, request_id, changes)
