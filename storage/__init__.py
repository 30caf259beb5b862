from flask import current_app

from storage.base import (
    DuplicateEntry,
    IntegrityViolation,
    Storage,
    StorageError,
    StorageUnavailable,
    utcnow,
)
from storage.memory import MemStorage


def get_storage():
    """Return the store bound to the running app."""
    return current_app.extensions["storage"]


__all__ = [
    "DuplicateEntry",
    "IntegrityViolation",
    "MemStorage",
    "Storage",
    "StorageError",
    "StorageUnavailable",
    "get_storage",
    "utcnow",
]
