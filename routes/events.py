import logging

from flask import jsonify
from flask_jwt_extended import current_user, jwt_required

from errors import BadRequest, NotFound
from routes import changes_from, check_detail_edit, found, main, parse_body
from schemas import EventCreate, EventUpdate
from services.policy import authorize
from services.rewards import award
from services.transitions import EVENT
from storage import get_storage

logger = logging.getLogger(__name__)

DETAIL_FIELDS = {"title", "description", "location", "date", "max_participants", "image"}
OPEN_STATUSES = ("upcoming", "ongoing")
PARTICIPANT_FIELDS = ("id", "username", "full_name")


def participant_view(user):
    return {key: user[key] for key in PARTICIPANT_FIELDS}


@main.route("/events", methods=["GET"])
def get_events():
    return jsonify(get_storage().get_upcoming_events())


@main.route("/events/<int:event_id>", methods=["GET"])
def get_event(event_id):
    storage = get_storage()
    event = found(storage.get_event(event_id), "Event")
    event["participant_count"] = storage.count_event_participants(event_id)
    return jsonify(event)


@main.route("/my-events", methods=["GET"])
@jwt_required()
def get_my_events():
    authorize(
        current_user, "event", "list_own", owner_id=current_user["id"],
        message="Organization access required",
    )
    return jsonify(get_storage().get_events_by_organizer_id(current_user["id"]))


@main.route("/events", methods=["POST"])
@jwt_required()
def create_event():
    authorize(
        current_user, "event", "create", owner_id=current_user["id"],
        message="Only organizations can create events",
    )
    body = parse_body(EventCreate)

    storage = get_storage()
    data = {**body.model_dump(), "organizer_id": current_user["id"], "status": "upcoming"}
    with storage.transaction():
        event = storage.create_event(data)
        award(storage, current_user["id"], "event_created")
    logger.info("Organization %s created event %s", current_user["id"], event["id"])

    return jsonify(event), 201


@main.route("/events/<int:event_id>", methods=["PUT"])
@jwt_required()
def update_event(event_id):
    storage = get_storage()
    event = found(storage.get_event(event_id), "Event")
    authorize(
        current_user, "event", "update", owner_id=event["organizer_id"],
        message="Only the organizer can update this event",
    )

    changes = changes_from(parse_body(EventUpdate))
    check_detail_edit(
        event, changes, DETAIL_FIELDS, "event",
        owner_field="organizer_id", editable_status="upcoming",
    )
    if "max_participants" in changes:
        if changes["max_participants"] < storage.count_event_participants(event_id):
            raise BadRequest("max_participants is below the number of registered participants")

    target = changes.pop("status", event["status"])
    moving = EVENT.check(event["status"], target, current_user["role"])
    if moving:
        changes["status"] = target

    with storage.transaction():
        updated = storage.update_event(event_id, changes)
        if moving and target == "completed":
            for participant in storage.get_event_participants(event_id):
                award(storage, participant["id"], "event_completed")

    if moving:
        logger.info("Event %s moved %s -> %s", event_id, event["status"], target)
    return jsonify(updated)


@main.route("/events/<int:event_id>/participants", methods=["POST"])
@jwt_required()
def join_event(event_id):
    storage = get_storage()
    event = found(storage.get_event(event_id), "Event")
    authorize(current_user, "event", "join", owner_id=current_user["id"])

    if event["status"] not in OPEN_STATUSES:
        raise BadRequest("Event is not open for registration")

    with storage.transaction():
        if storage.is_user_participating(event_id, current_user["id"]):
            raise BadRequest("Already registered for this event")
        limit = event["max_participants"]
        if limit is not None and storage.count_event_participants(event_id) >= limit:
            raise BadRequest("Event has reached maximum participants")
        participant = storage.add_event_participant(event_id, current_user["id"])

    logger.info("User %s joined event %s", current_user["id"], event_id)
    return jsonify(participant), 201


@main.route("/events/<int:event_id>/participants", methods=["GET"])
def get_event_participants(event_id):
    storage = get_storage()
    found(storage.get_event(event_id), "Event")
    return jsonify([participant_view(u) for u in storage.get_event_participants(event_id)])


@main.route("/events/<int:event_id>/participants", methods=["DELETE"])
@jwt_required()
def leave_event(event_id):
    storage = get_storage()
    found(storage.get_event(event_id), "Event")
    if not storage.remove_event_participant(event_id, current_user["id"]):
        raise NotFound("Not registered for this event")
    return jsonify({"message": "Successfully left the event"})
