import logging

from flask import jsonify
from flask_jwt_extended import current_user, jwt_required

from routes import (
    changes_from,
    check_detail_edit,
    found,
    main,
    parse_body,
    records_in_scope,
)
from schemas import HelpRequestCreate, HelpRequestUpdate
from services.policy import authorize, list_scope
from services.transitions import HELP_REQUEST
from storage import get_storage

logger = logging.getLogger(__name__)

DETAIL_FIELDS = {
    "title", "description", "help_type", "location", "scheduled_date",
    "max_participants", "skills", "is_urgent",
}


@main.route("/help-requests", methods=["GET"])
@jwt_required()
def get_help_requests():
    storage = get_storage()
    scope = list_scope(current_user["role"], "help_request")
    requests = records_in_scope(
        scope,
        current_user,
        all_records=storage.get_all_help_requests,
        own_records=storage.get_help_requests_by_user_id,
    )
    return jsonify(requests)


@main.route("/help-requests", methods=["POST"])
@jwt_required()
def create_help_request():
    authorize(current_user, "help_request", "create", owner_id=current_user["id"])
    body = parse_body(HelpRequestCreate)
    help_request = get_storage().create_help_request(
        {**body.model_dump(), "user_id": current_user["id"]}
    )
    logger.info("User %s asked for help (%s)", current_user["id"], help_request["id"])
    return jsonify(help_request), 201


@main.route("/help-requests/<int:request_id>", methods=["GET"])
@jwt_required()
def get_help_request(request_id):
    help_request = found(get_storage().get_help_request(request_id), "Help request")
    authorize(current_user, "help_request", "read", owner_id=help_request["user_id"])
    return jsonify(help_request)


@main.route("/help-requests/<int:request_id>", methods=["PUT"])
@jwt_required()
def update_help_request(request_id):
    storage = get_storage()
    help_request = found(storage.get_help_request(request_id), "Help request")
    authorize(current_user, "help_request", "update", owner_id=help_request["user_id"])

    changes = changes_from(parse_body(HelpRequestUpdate))
    check_detail_edit(help_request, changes, DETAIL_FIELDS, "help request")

    target = changes.pop("status", help_request["status"])
    if HELP_REQUEST.check(help_request["status"], target, current_user["role"]):
        changes["status"] = target
        logger.info("Help request %s moved %s -> %s", request_id, help_request["status"], target)

    return jsonify(storage.update_help_request(request_id, changes))
