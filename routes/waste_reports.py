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
from schemas import WasteReportCreate, WasteReportUpdate
from services.policy import DEALER, authorize, list_scope
from services.rewards import award
from services.transitions import WASTE_REPORT
from storage import get_storage, utcnow

logger = logging.getLogger(__name__)

DETAIL_FIELDS = {"title", "description", "location", "images", "is_segregated", "waste_category"}
SCHEDULING_FIELDS = {"scheduled_date", "assigned_dealer_id"}


@main.route("/waste-reports", methods=["GET"])
@jwt_required()
def get_waste_reports():
    storage = get_storage()
    scope = list_scope(current_user["role"], "waste_report")
    reports = records_in_scope(
        scope,
        current_user,
        all_records=storage.get_all_waste_reports,
        own_records=storage.get_waste_reports_by_user_id,
        by_status=storage.get_waste_reports_by_status,
    )
    return jsonify(reports)


@main.route("/waste-reports/assigned", methods=["GET"])
@jwt_required()
def get_assigned_waste_reports():
    authorize(current_user, "waste_report", "list_assigned", message="Dealer access required")
    return jsonify(get_storage().get_waste_reports_by_dealer_id(current_user["id"]))


@main.route("/waste-reports/<int:report_id>", methods=["GET"])
@jwt_required()
def get_waste_report(report_id):
    report = found(get_storage().get_waste_report(report_id), "Waste report")
    authorize(current_user, "waste_report", "read", owner_id=report["user_id"])
    return jsonify(report)


@main.route("/waste-reports", methods=["POST"])
@jwt_required()
def create_waste_report():
    authorize(
        current_user, "waste_report", "create", owner_id=current_user["id"],
        message="Only customers can report waste",
    )
    body = parse_body(WasteReportCreate)

    storage = get_storage()
    with storage.transaction():
        report = storage.create_waste_report({**body.model_dump(), "user_id": current_user["id"]})
        award(storage, current_user["id"], "waste_report_created")
    logger.info("User %s reported waste %s", current_user["id"], report["id"])

    return jsonify(report), 201


def scheduling_changes(storage, changes):
    """Work out who picks up a report being scheduled."""
    if changes.get("scheduled_date") is None:
        raise BadRequest("scheduled_date is required to schedule a pickup")

    if current_user["role"] == DEALER:
        if changes.get("assigned_dealer_id", current_user["id"]) != current_user["id"]:
            raise Forbidden("Dealers can only schedule pickups for themselves")
        return {"assigned_dealer_id": current_user["id"]}

    dealer_id = changes.get("assigned_dealer_id")
    if dealer_id is None:
        raise BadRequest("assigned_dealer_id is required to schedule a pickup")
    dealer = storage.get_user(dealer_id)
    if dealer is None or dealer["role"] != DEALER:
        raise BadRequest("assigned_dealer_id must reference a dealer")
    return {"assigned_dealer_id": dealer_id}


@main.route("/waste-reports/<int:report_id>", methods=["PUT"])
@jwt_required()
def update_waste_report(report_id):
    storage = get_storage()
    report = found(storage.get_waste_report(report_id), "Waste report")
    authorize(current_user, "waste_report", "update", owner_id=report["user_id"])

    changes = changes_from(parse_body(WasteReportUpdate))
    check_detail_edit(report, changes, DETAIL_FIELDS, "waste report")

    target = changes.pop("status", report["status"])
    moving = WASTE_REPORT.check(report["status"], target, current_user["role"])

    if moving and target == "scheduled":
        changes.update(scheduling_changes(storage, changes))
    elif SCHEDULING_FIELDS & changes.keys():
        raise BadRequest("scheduled_date and assigned_dealer_id are only set when scheduling")

    if moving and target in ("in_progress", "completed"):
        if current_user["role"] == DEALER and report["assigned_dealer_id"] != current_user["id"]:
            raise Forbidden("Only the assigned dealer can update this pickup")
    if moving:
        changes["status"] = target
        if target == "completed":
            changes["completed_at"] = utcnow()

    with storage.transaction():
        updated = storage.update_waste_report(report_id, changes)
        if moving and target == "completed":
            award(storage, updated["user_id"], "waste_report_completed")
            award(storage, updated["assigned_dealer_id"], "waste_report_completed")

    if moving:
        logger.info("Waste report %s moved %s -> %s by user %s",
                    report_id, report["status"], target, current_user["id"])
    return jsonify(updated)
