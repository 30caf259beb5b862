import logging

from flask import jsonify
from flask_jwt_extended import current_user, jwt_required

from errors import BadRequest
from routes import changes_from, found, main, parse_body, records_in_scope
from schemas import FeedbackAssign, FeedbackCreate, FeedbackUpdate
from services.policy import authorize, list_scope
from services.rewards import award
from services.transitions import FEEDBACK
from storage import get_storage

logger = logging.getLogger(__name__)


def feedback_assigned_to(storage, user_id):
    return [f for f in storage.get_all_feedback() if f["assigned_to_id"] == user_id]


@main.route("/feedback", methods=["GET"])
@jwt_required()
def get_feedback():
    storage = get_storage()
    scope = list_scope(current_user["role"], "feedback")
    entries = records_in_scope(
        scope,
        current_user,
        all_records=storage.get_all_feedback,
        own_records=storage.get_feedback_by_user_id,
        assigned_records=lambda user_id: feedback_assigned_to(storage, user_id),
    )
    return jsonify(entries)


@main.route("/feedback", methods=["POST"])
@jwt_required()
def create_feedback():
    authorize(current_user, "feedback", "create", owner_id=current_user["id"])
    body = parse_body(FeedbackCreate)

    storage = get_storage()
    with storage.transaction():
        entry = storage.create_feedback({**body.model_dump(), "user_id": current_user["id"]})
        award(storage, current_user["id"], "feedback_submitted")
    return jsonify(entry), 201


@main.route("/feedback/<int:feedback_id>", methods=["PUT"])
@jwt_required()
def update_feedback(feedback_id):
    storage = get_storage()
    entry = found(storage.get_feedback(feedback_id), "Feedback")
    authorize(
        current_user, "feedback", "update", assignee_id=entry["assigned_to_id"],
        message="Only the assignee can update this feedback",
    )
    body = parse_body(FeedbackUpdate)

    if not FEEDBACK.check(entry["status"], body.status, current_user["role"]):
        return jsonify(entry)
    updated = storage.update_feedback(feedback_id, {"status": body.status})
    logger.info("Feedback %s marked %s by user %s", feedback_id, body.status, current_user["id"])
    return jsonify(updated)


@main.route("/feedback/<int:feedback_id>/assign", methods=["POST"])
@jwt_required()
def assign_feedback(feedback_id):
    authorize(current_user, "feedback", "assign", message="Admin access required")
    body = parse_body(FeedbackAssign)

    storage = get_storage()
    found(storage.get_feedback(feedback_id), "Feedback")
    if storage.get_user(body.user_id) is None:
        raise BadRequest("user_id must reference an existing user")

    updated = storage.assign_feedback_to_user(feedback_id, body.user_id)
    logger.info("Feedback %s assigned to user %s", feedback_id, body.user_id)
    return jsonify(updated)
