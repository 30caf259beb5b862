from flask import Blueprint, jsonify, request
from flask_jwt_extended import current_user

from errors import BadRequest, Conflict, Forbidden, NotFound
from services.policy import ADMIN

main = Blueprint("main", __name__, url_prefix="/api")

PUBLIC_PROFILE_FIELDS = ("id", "username", "full_name", "role", "social_points")


def parse_body(schema):
    """Validate the JSON body against ``schema``; pydantic errors become a 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return schema.model_validate(data)


def changes_from(body):
    return body.model_dump(exclude_unset=True, exclude_none=True)


def public_user(user):
    """Strip credentials from a user record."""
    return {key: value for key, value in user.items() if key != "password_hash"}


def public_profile(user):
    return {key: user[key] for key in PUBLIC_PROFILE_FIELDS}


def found(record, label):
    if record is None:
        raise NotFound(f"{label} not found")
    return record


def records_in_scope(scope, user, all_records, own_records, by_status=None, assigned_records=None):
    """Resolve a ListScope into records using the given storage getters."""
    if scope.kind == "all":
        return all_records()
    if scope.kind == "own":
        return own_records(user["id"])
    if scope.kind == "assigned":
        return assigned_records(user["id"])
    if scope.kind == "status":
        merged = [r for status in scope.statuses for r in by_status(status)]
        return sorted(merged, key=lambda r: r["id"])
    raise ValueError(f"Unsupported list scope {scope!r}")


def check_detail_edit(record, changes, fields, label, owner_field="user_id", editable_status="pending"):
    """Only the owner (or an admin) edits descriptive fields, and only before work starts."""
    if not fields & changes.keys():
        return
    if record[owner_field] != current_user["id"] and current_user["role"] != ADMIN:
        raise Forbidden(f"Only the owner can edit {label} details")
    if record["status"] != editable_status:
        raise Conflict(f"{label.capitalize()} details can only be edited while {editable_status}")


@main.route("/health")
def health():
    return jsonify({"status": "ok"})


from routes import (  # noqa: E402,F401
    analytics,
    auth,
    donations,
    events,
    feedback,
    help_requests,
    issues,
    media,
    users,
    waste_reports,
)
