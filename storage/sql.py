import logging
import threading
import time
from contextlib import contextmanager
from functools import wraps

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError

from extensions import db
from models import (
    Donation,
    Event,
    EventParticipant,
    Feedback,
    HelpRequest,
    Issue,
    MediaContent,
    User,
    WasteReport,
)
from storage.base import (
    DuplicateEntry,
    IntegrityViolation,
    Storage,
    StorageUnavailable,
    utcnow,
    with_defaults,
)

logger = logging.getLogger(__name__)


def retry_transient(method):
    """Retry a read when the database connection drops.

    Reads inside ``transaction()`` are not retried since the session state
    they depend on is gone after a rollback.
    """

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        attempts = self.retry_attempts if self._depth == 0 else 1
        for attempt in range(1, attempts + 1):
            try:
                return method(self, *args, **kwargs)
            except OperationalError as exc:
                if self._depth:
                    raise StorageUnavailable("Database unavailable") from exc
                db.session.rollback()
                if attempt == attempts:
                    logger.error("%s failed after %d attempts", method.__name__, attempts)
                    raise StorageUnavailable("Database unavailable") from exc
                delay = self.retry_backoff * 2 ** (attempt - 1)
                logger.warning("%s hit %s, retrying in %.2fs", method.__name__, exc.orig, delay)
                time.sleep(delay)

    return wrapper


class SqlStorage(Storage):
    """Database-backed store built on the Flask-SQLAlchemy models.

    Every call must run inside an application context.
    """

    def __init__(self, retry_attempts=3, retry_backoff=0.2):
        self.retry_attempts = max(1, retry_attempts)
        self.retry_backoff = retry_backoff
        self._local = threading.local()

    @property
    def _depth(self):
        return getattr(self._local, "depth", 0)

    @_depth.setter
    def _depth(self, value):
        self._local.depth = value

    # Plumbing

    def _commit(self):
        try:
            if self._depth:
                db.session.flush()
            else:
                db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise DuplicateEntry(str(exc.orig)) from exc
        except OperationalError as exc:
            db.session.rollback()
            raise StorageUnavailable("Database unavailable") from exc

    @contextmanager
    def transaction(self):
        outermost = self._depth == 0
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if outermost:
                db.session.rollback()
                logger.info("Rolled back database transaction")
            raise
        self._depth -= 1
        if outermost:
            self._commit()

    @retry_transient
    def _get(self, model, row_id):
        obj = db.session.get(model, row_id)
        return obj.to_dict() if obj is not None else None

    @retry_transient
    def _filter(self, model, *criteria):
        return [obj.to_dict() for obj in model.query.filter(*criteria).order_by(model.id).all()]

    def _create(self, model, kind, data):
        record = with_defaults(kind, data)
        record.pop("id", None)
        self.check_user_references(record)
        obj = model(**record)
        db.session.add(obj)
        self._commit()
        return obj.to_dict()

    def _update(self, model, row_id, changes):
        obj = db.session.get(model, row_id)
        if obj is None:
            return None
        self.check_user_references(changes)
        for key, value in changes.items():
            setattr(obj, key, value)
        self._commit()
        return obj.to_dict()

    # Users

    def get_user(self, user_id):
        return self._get(User, user_id)

    @retry_transient
    def get_user_by_username(self, username):
        user = User.query.filter(func.lower(User.username) == username.lower()).first()
        return user.to_dict() if user else None

    @retry_transient
    def get_user_by_email(self, email):
        user = User.query.filter(func.lower(User.email) == email.lower()).first()
        return user.to_dict() if user else None

    def create_user(self, data):
        if self.get_user_by_username(data["username"]):
            raise DuplicateEntry("Username already taken")
        if self.get_user_by_email(data["email"]):
            raise DuplicateEntry("Email already registered")
        return self._create(User, "user", data)

    def update_user(self, user_id, changes):
        return self._update(User, user_id, changes)

    def get_users_by_role(self, role):
        return self._filter(User, User.role == role)

    def get_all_users(self):
        return self._filter(User)

    def add_social_points(self, user_id, points):
        if points < 0:
            raise ValueError("Social points can only be added")
        updated = User.query.filter_by(id=user_id).update(
            {User.social_points: User.social_points + points}
        )
        if not updated:
            return None
        self._commit()
        return self.get_user(user_id)

    # Waste reports

    def create_waste_report(self, data):
        return self._create(WasteReport, "waste_report", data)

    def get_waste_report(self, report_id):
        return self._get(WasteReport, report_id)

    def get_waste_reports_by_user_id(self, user_id):
        return self._filter(WasteReport, WasteReport.user_id == user_id)

    def get_waste_reports_by_status(self, status):
        return self._filter(WasteReport, WasteReport.status == status)

    def get_waste_reports_by_dealer_id(self, dealer_id):
        return self._filter(WasteReport, WasteReport.assigned_dealer_id == dealer_id)

    def get_all_waste_reports(self):
        return self._filter(WasteReport)

    def update_waste_report(self, report_id, changes):
        return self._update(WasteReport, report_id, changes)

    # Donations

    def create_donation(self, data):
        return self._create(Donation, "donation", data)

    def get_donation(self, donation_id):
        return self._get(Donation, donation_id)

    def get_donations_by_user_id(self, user_id):
        return self._filter(Donation, Donation.user_id == user_id)

    def get_available_donations(self):
        return self._filter(Donation, Donation.status == "available")

    def get_donations_by_organization_id(self, organization_id):
        return self._filter(Donation, Donation.requested_by_organization_id == organization_id)

    def get_all_donations(self):
        return self._filter(Donation)

    def update_donation(self, donation_id, changes):
        return self._update(Donation, donation_id, changes)

    # Events

    def create_event(self, data):
        return self._create(Event, "event", data)

    def get_event(self, event_id):
        return self._get(Event, event_id)

    def get_events_by_organizer_id(self, organizer_id):
        return self._filter(Event, Event.organizer_id == organizer_id)

    def get_upcoming_events(self, now=None):
        return self._filter(Event, Event.status == "upcoming", Event.date > (now or utcnow()))

    def get_all_events(self):
        return self._filter(Event)

    def update_event(self, event_id, changes):
        return self._update(Event, event_id, changes)

    # Event participants

    def add_event_participant(self, event_id, user_id):
        if db.session.get(Event, event_id) is None:
            raise IntegrityViolation(f"event_id references unknown event {event_id}")
        if self.is_user_participating(event_id, user_id):
            raise DuplicateEntry("Already registered for this event")
        self.check_user_references({"user_id": user_id})
        participant = EventParticipant(event_id=event_id, user_id=user_id)
        db.session.add(participant)
        self._commit()
        return participant.to_dict()

    @retry_transient
    def get_event_participants(self, event_id):
        users = (
            User.query.join(EventParticipant, EventParticipant.user_id == User.id)
            .filter(EventParticipant.event_id == event_id)
            .order_by(EventParticipant.id)
            .all()
        )
        return [u.to_dict() for u in users]

    @retry_transient
    def count_event_participants(self, event_id):
        return EventParticipant.query.filter_by(event_id=event_id).count()

    @retry_transient
    def is_user_participating(self, event_id, user_id):
        return EventParticipant.query.filter_by(event_id=event_id, user_id=user_id).first() is not None

    def remove_event_participant(self, event_id, user_id):
        participant = EventParticipant.query.filter_by(event_id=event_id, user_id=user_id).first()
        if participant is None:
            return False
        db.session.delete(participant)
        self._commit()
        return True

    # Media content

    def create_media_content(self, data):
        return self._create(MediaContent, "media_content", data)

    def get_media_content(self, content_id):
        return self._get(MediaContent, content_id)

    def get_all_media_content(self):
        return self._filter(MediaContent, MediaContent.published.is_(True))

    def get_media_content_by_type(self, content_type):
        return self._filter(
            MediaContent,
            MediaContent.published.is_(True),
            MediaContent.content_type == content_type,
        )

    # Issues

    def create_issue(self, data):
        return self._create(Issue, "issue", data)

    def get_issue(self, issue_id):
        return self._get(Issue, issue_id)

    def get_issues_by_user_id(self, user_id):
        return self._filter(Issue, Issue.user_id == user_id)

    def get_issues_by_status(self, status):
        return self._filter(Issue, Issue.status == status)

    def get_all_issues(self):
        return self._filter(Issue)

    def update_issue(self, issue_id, changes):
        return self._update(Issue, issue_id, changes)

    # Feedback

    def create_feedback(self, data):
        return self._create(Feedback, "feedback", data)

    def get_feedback(self, feedback_id):
        return self._get(Feedback, feedback_id)

    def get_feedback_by_user_id(self, user_id):
        return self._filter(Feedback, Feedback.user_id == user_id)

    def get_all_feedback(self):
        return self._filter(Feedback)

    def update_feedback(self, feedback_id, changes):
        return self._update(Feedback, feedback_id, changes)

    # Help requests

    def create_help_request(self, data):
        return self._create(HelpRequest, "help_request", data)

    def get_help_request(self, request_id):
        return self._get(HelpRequest, request_id)

    def get_help_requests_by_user_id(self, user_id):
        return self._filter(HelpRequest, HelpRequest.user_id == user_id)

    def get_all_help_requests(self):
        return self._filter(HelpRequest)

    def update_help_request(self, request_id, changes):
        return self._update(HelpRequest, request_id, changes)

    # Analytics

    @retry_transient
    def get_stats(self):
        return {
            "pickups_completed": WasteReport.query.filter_by(status="completed").count(),
            "items_donated": Donation.query.filter_by(status="completed").count(),
            "community_events": Event.query.count(),
            "active_members": User.query.count(),
        }
