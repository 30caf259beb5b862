import logging

from flask import jsonify
from flask_jwt_extended import current_user, jwt_required

from errors import BadRequest, Forbidden
from routes import (
    changes_from,
    check_detail_edit,
    found,
    main,
    parse_body,
    records_in_scope,
)
from schemas import IssueAssign, IssueCreate, IssueUpdate
from services.policy import ORGANIZATION, authorize, list_scope
from services.transitions import ISSUE
from storage import get_storage

logger = logging.getLogger(__name__)

DETAIL_FIELDS = {
    "title", "description", "issue_type", "location", "images", "is_urgent",
    "request_community_help",
}
WORKING_STATUSES = ("assigned", "in_progress")


def issues_for_organization(storage, organization_id):
    """Open issues plus the ones this organization is working on."""
    issues = storage.get_issues_by_status("pending")
    for status in WORKING_STATUSES:
        issues.extend(i for i in storage.get_issues_by_status(status)
                      if i["assigned_organization_id"] == organization_id)
    return sorted(issues, key=lambda i: i["id"])


@main.route("/issues", methods=["GET"])
@jwt_required()
def get_issues():
    storage = get_storage()
    scope = list_scope(current_user["role"], "issue")
    if scope.kind == "pending_or_assigned":
        return jsonify(issues_for_organization(storage, current_user["id"]))
    issues = records_in_scope(
        scope,
        current_user,
        all_records=storage.get_all_issues,
        own_records=storage.get_issues_by_user_id,
        by_status=storage.get_issues_by_status,
    )
    return jsonify(issues)


@main.route("/issues", methods=["POST"])
@jwt_required()
def create_issue():
    authorize(current_user, "issue", "create", owner_id=current_user["id"])
    body = parse_body(IssueCreate)
    issue = get_storage().create_issue({**body.model_dump(), "user_id": current_user["id"]})
    logger.info("User %s reported issue %s", current_user["id"], issue["id"])
    return jsonify(issue), 201


@main.route("/issues/<int:issue_id>", methods=["GET"])
@jwt_required()
def get_issue(issue_id):
    issue = found(get_storage().get_issue(issue_id), "Issue")
    authorize(current_user, "issue", "read", owner_id=issue["user_id"])
    return jsonify(issue)


@main.route("/issues/<int:issue_id>", methods=["PUT"])
@jwt_required()
def update_issue(issue_id):
    storage = get_storage()
    issue = found(storage.get_issue(issue_id), "Issue")
    authorize(current_user, "issue", "update", owner_id=issue["user_id"])

    changes = changes_from(parse_body(IssueUpdate))
    check_detail_edit(issue, changes, DETAIL_FIELDS, "issue")

    target = changes.pop("status", issue["status"])
    if target == "assigned" and issue["status"] == "pending":
        raise BadRequest("Use the assign endpoint to assign an issue")
    moving = ISSUE.check(issue["status"], target, current_user["role"])
    if moving:
        if current_user["role"] == ORGANIZATION and target in ("in_progress", "resolved") \
                and issue["assigned_organization_id"] != current_user["id"]:
            raise Forbidden("Only the assigned organization can update this issue")
        changes["status"] = target

    updated = storage.update_issue(issue_id, changes)
    if moving:
        logger.info("Issue %s moved %s -> %s by user %s",
                    issue_id, issue["status"], target, current_user["id"])
    return jsonify(updated)


@main.route("/issues/<int:issue_id>/assign", methods=["POST"])
@jwt_required()
def assign_issue(issue_id):
    authorize(current_user, "issue", "assign", message="Admin access required")
    body = parse_body(IssueAssign)

    storage = get_storage()
    issue = found(storage.get_issue(issue_id), "Issue")
    organization = storage.get_user(body.organization_id)
    if organization is None or organization["role"] != ORGANIZATION:
        raise BadRequest("organization_id must reference an organization")
    # re-assigning an already assigned issue is allowed
    ISSUE.check(issue["status"], "assigned", current_user["role"])

    updated = storage.assign_issue_to_organization(issue_id, body.organization_id)
    logger.info("Issue %s assigned to organization %s", issue_id, body.organization_id)
    return jsonify(updated)
