import logging

from flask import jsonify, request
from flask_jwt_extended import current_user, jwt_required

from errors import BadRequest
from routes import changes_from, found, main, parse_body, public_user
from schemas import UserRoleUpdate
from services.policy import ROLES, authorize
from storage import get_storage

logger = logging.getLogger(__name__)


@main.route("/users", methods=["GET"])
@jwt_required()
def get_all_users():
    authorize(current_user, "user", "list", message="Admin access required")

    role = request.args.get("role")
    storage = get_storage()
    if role:
        if role not in ROLES:
            raise BadRequest("Invalid role")
        users = storage.get_users_by_role(role)
    else:
        users = storage.get_all_users()

    return jsonify([public_user(u) for u in users])


@main.route("/users/<int:user_id>", methods=["GET"])
@jwt_required()
def get_user(user_id):
    authorize(current_user, "user", "read", message="Admin access required")
    user = found(get_storage().get_user(user_id), "User")
    return jsonify(public_user(user))


@main.route("/users/<int:user_id>", methods=["PUT"])
@jwt_required()
def update_user_role(user_id):
    authorize(current_user, "user", "update", message="Admin access required")
    body = parse_body(UserRoleUpdate)

    storage = get_storage()
    found(storage.get_user(user_id), "User")
    user = storage.update_user(user_id, changes_from(body))
    logger.info("Admin %s set role of user %s to %s", current_user["id"], user_id, body.role)

    return jsonify(public_user(user))
