import logging

logger = logging.getLogger(__name__)

POINTS = {
    "waste_report_created": 2,
    "waste_report_completed": 10,
    "donation_created": 5,
    "donation_completed": 10,
    "event_created": 15,
    "event_completed": 5,
    "feedback_submitted": 1,
    "media_published": 10,
}


def award(storage, user_id, reason):
    """Credit ``user_id`` with the points for ``reason``; returns the updated user."""
    points = POINTS[reason]
    user = storage.add_social_points(user_id, points)
    if user is None:
        logger.warning("Skipped %s award: user %s not found", reason, user_id)
        return None
    logger.info("Awarded %d points to user %s for %s", points, user_id, reason)
    return user
