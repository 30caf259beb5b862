import logging

from flask import jsonify
from flask_jwt_extended import current_user, jwt_required

from errors import Forbidden
from routes import (
    changes_from,
    check_detail_edit,
    found,
    main,
    parse_body,
    records_in_scope,
)
from schemas import DonationCreate, DonationUpdate
from services.policy import ORGANIZATION, authorize, list_scope
from services.rewards import award
from services.transitions import DONATION
from storage import get_storage

logger = logging.getLogger(__name__)

DETAIL_FIELDS = {"item_name", "description", "category", "images"}


def donations_by_status(storage, status):
    if status == "available":
        return storage.get_available_donations()
    return [d for d in storage.get_all_donations() if d["status"] == status]


@main.route("/donations", methods=["GET"])
@jwt_required()
def get_donations():
    storage = get_storage()
    scope = list_scope(current_user["role"], "donation")
    donations = records_in_scope(
        scope,
        current_user,
        all_records=storage.get_all_donations,
        own_records=storage.get_donations_by_user_id,
        by_status=lambda status: donations_by_status(storage, status),
    )
    return jsonify(donations)


@main.route("/donations/requested", methods=["GET"])
@jwt_required()
def get_requested_donations():
    authorize(current_user, "donation", "list_requested", message="Organization access required")
    return jsonify(get_storage().get_donations_by_organization_id(current_user["id"]))


@main.route("/donations/<int:donation_id>", methods=["GET"])
@jwt_required()
def get_donation(donation_id):
    donation = found(get_storage().get_donation(donation_id), "Donation")
    authorize(current_user, "donation", "read", owner_id=donation["user_id"])
    return jsonify(donation)


@main.route("/donations", methods=["POST"])
@jwt_required()
def create_donation():
    authorize(
        current_user, "donation", "create", owner_id=current_user["id"],
        message="Only customers can donate items",
    )
    body = parse_body(DonationCreate)

    storage = get_storage()
    with storage.transaction():
        donation = storage.create_donation({**body.model_dump(), "user_id": current_user["id"]})
        award(storage, current_user["id"], "donation_created")
    logger.info("User %s offered donation %s", current_user["id"], donation["id"])

    return jsonify(donation), 201


@main.route("/donations/<int:donation_id>", methods=["PUT"])
@jwt_required()
def update_donation(donation_id):
    storage = get_storage()
    donation = found(storage.get_donation(donation_id), "Donation")
    authorize(current_user, "donation", "update", owner_id=donation["user_id"])

    changes = changes_from(parse_body(DonationUpdate))
    check_detail_edit(donation, changes, DETAIL_FIELDS, "donation", editable_status="available")

    target = changes.pop("status", donation["status"])
    moving = DONATION.check(donation["status"], target, current_user["role"])
    if moving:
        requester = donation["requested_by_organization_id"]
        if current_user["role"] == ORGANIZATION and target != "requested" \
                and requester != current_user["id"]:
            raise Forbidden("Only the requesting organization can update this donation")
        if target == "requested":
            changes["requested_by_organization_id"] = current_user["id"]
        elif target == "available":
            changes["requested_by_organization_id"] = None
        changes["status"] = target

    with storage.transaction():
        updated = storage.update_donation(donation_id, changes)
        if moving and target == "completed":
            award(storage, updated["user_id"], "donation_completed")

    if moving:
        logger.info("Donation %s moved %s -> %s by user %s",
                    donation_id, donation["status"], target, current_user["id"])
    return jsonify(updated)
