"""
Core Utilities

Shared helpers used across the application.
"""
import re
import uuid
from datetime import datetime, timezone

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Use this instead of datetime.utcnow() which returns naive datetime.
    """
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Primary key for new rows (UUID4 string)."""
    return str(uuid.uuid4())


def generate_slug(name: str) -> str:
    """
    Derive a URL-safe slug from a display name.

    Lower-cases, collapses every run of non-alphanumeric characters into a
    single hyphen and trims hyphens at both ends:
    "Men's T-Shirts!!" -> "men-s-t-shirts"
    """
    return _NON_ALNUM.sub("-", (name or "").lower()).strip("-")
