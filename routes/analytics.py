from flask import jsonify
from flask_jwt_extended import current_user, jwt_required

from routes import main, public_profile
from services.policy import authorize
from storage import get_storage

LEADERBOARD_SIZE = 10


@main.route("/stats", methods=["GET"])
def get_stats():
    return jsonify(get_storage().get_stats())


@main.route("/leaderboard", methods=["GET"])
def get_leaderboard():
    leaders = get_storage().get_leaderboard(LEADERBOARD_SIZE)
    return jsonify([public_profile(u) for u in leaders])


@main.route("/environmental-impact", methods=["GET"])
@jwt_required()
def get_environmental_impact():
    authorize(current_user, "impact", "read", message="Admin or Organization access required")
    return jsonify(get_storage().get_environmental_impact())
