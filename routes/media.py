import logging

from flask import jsonify, request
from flask_jwt_extended import current_user, get_current_user, jwt_required, verify_jwt_in_request

from errors import NotFound
from routes import found, main, parse_body
from schemas import MediaContentCreate
from services.policy import ORGANIZATION, authorize, is_allowed
from services.rewards import award
from storage import get_storage

logger = logging.getLogger(__name__)


@main.route("/media", methods=["GET"])
def get_media():
    storage = get_storage()
    content_type = request.args.get("type")
    if content_type:
        return jsonify(storage.get_media_content_by_type(content_type))
    return jsonify(storage.get_all_media_content())


@main.route("/media/<int:content_id>", methods=["GET"])
def get_media_item(content_id):
    item = found(get_storage().get_media_content(content_id), "Media content")
    if not item["published"]:
        # only drafts read the token
        verify_jwt_in_request(optional=True)
        viewer = get_current_user()
        # drafts look missing to everyone but their author and admins
        if viewer is None or not is_allowed(
            viewer["role"], viewer["id"], "media", "read_unpublished", owner_id=item["author_id"]
        ):
            raise NotFound("Media content not found")
    return jsonify(item)


@main.route("/media", methods=["POST"])
@jwt_required()
def create_media():
    authorize(current_user, "media", "create", owner_id=current_user["id"])
    body = parse_body(MediaContentCreate)

    storage = get_storage()
    with storage.transaction():
        item = storage.create_media_content({**body.model_dump(), "author_id": current_user["id"]})
        if item["published"] and current_user["role"] == ORGANIZATION:
            award(storage, current_user["id"], "media_published")
    logger.info("User %s added %s %s", current_user["id"], item["content_type"], item["id"])

    return jsonify(item), 201
