"""Default records every fresh Green Path instance starts with."""
import logging

from werkzeug.security import generate_password_hash

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PASSWORD = "ChangeMe0931@"

STARTER_MEDIA = [
    {
        "title": "Composting 101: Turn Kitchen Waste into Garden Gold",
        "description": "Learn the basics of composting and how to create nutrient-rich soil "
                       "from your everyday kitchen waste.",
        "content_type": "video",
        "content": "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "tags": ["composting", "kitchen waste", "gardening"],
    },
    {
        "title": "Waste Segregation: A Step-by-Step Guide for Beginners",
        "description": "Expert advice on how to properly sort your waste into recyclables, "
                       "compostables, and non-recyclables.",
        "content_type": "article",
        "content": "# Waste Segregation Guide\n\nWaste segregation is the process of "
                   "separating waste into different categories...",
        "tags": ["waste segregation", "recycling", "beginners guide"],
    },
    {
        "title": "Riverside Cleanup Drive: Join Our Community Effort",
        "description": "Participate in our monthly cleanup drive to help restore the natural "
                       "beauty of our local riverside.",
        "content_type": "event",
        "content": "Join us for a community cleanup drive at the riverside park...",
        "tags": ["cleanup", "community", "environment"],
    },
]


def seed_admin(storage, config):
    if storage.get_user_by_username(config["ADMIN_USERNAME"]):
        return None
    if config["ADMIN_PASSWORD"] == DEFAULT_ADMIN_PASSWORD:
        logger.warning("Seeding admin with the default password; set ADMIN_PASSWORD")
    admin = storage.create_user({
        "username": config["ADMIN_USERNAME"],
        "email": config["ADMIN_EMAIL"],
        "password_hash": generate_password_hash(config["ADMIN_PASSWORD"]),
        "full_name": "System Administrator",
        "role": "admin",
    })
    logger.info("Created admin account %s", admin["username"])
    return admin


def seed_media(storage):
    existing = {item["title"] for item in storage.get_all_media_content()}
    created = []
    for item in STARTER_MEDIA:
        if item["title"] in existing:
            continue
        created.append(storage.create_media_content({**item, "author_id": None, "published": True}))
    if created:
        logger.info("Created %d starter media items", len(created))
    return created


def seed_defaults(storage, config):
    """Create the admin account and starter media when they are missing."""
    with storage.transaction():
        seed_admin(storage, config)
        seed_media(storage)
