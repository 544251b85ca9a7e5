"""
Validation for event and comment payloads.
"""

import re
from datetime import date
from typing import Any, Dict
from urllib.parse import urlparse

from backend.common.errors import ValidationError

# --- CONSTANTS FOR VALIDATION ---
TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 2000
LOCATION_MAX_LENGTH = 200
CONTACT_INFO_MAX_LENGTH = 100
MAX_TAGS = 10
# events.max_capacity is a PostgreSQL INTEGER
MAX_CAPACITY = 2**31 - 1
COMMENT_MAX_LENGTH = 500
VALID_CATEGORIES = [
    "general", "garage_sale", "sports", "church", "town_meeting",
    "community", "fundraiser", "workshop", "festival",
]
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _string(data: Dict[str, Any], key: str, required: bool = False) -> str:
    value = data.get(key)
    if value is None or (value == "" and not required):
        if required:
            raise ValidationError(f"{key} is required")
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    if required and not value:
        raise ValidationError(f"{key} is required")
    return value


def _is_uri(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_event_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a full event payload and return the editable fields.

    Keys outside the editable set are ignored. Optional fields that are
    missing come back with their defaults, so an update overwrites them too.

    Raises:
        ValidationError: naming the first rule that failed.
    """
    title = _string(data, "title", required=True)
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        raise ValidationError(f"title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters")

    description = _string(data, "description")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(f"description must be {DESCRIPTION_MAX_LENGTH} characters or less")

    category = _string(data, "category", required=True)
    if category not in VALID_CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(VALID_CATEGORIES)}")

    event_date = _string(data, "date", required=True)
    if not DATE_PATTERN.match(event_date):
        raise ValidationError("date must be in YYYY-MM-DD format")
    try:
        date.fromisoformat(event_date)
    except ValueError:
        raise ValidationError("date must be a real calendar date")

    time = _string(data, "time")

    location = _string(data, "location", required=True)
    if len(location) > LOCATION_MAX_LENGTH:
        raise ValidationError(f"location must be {LOCATION_MAX_LENGTH} characters or less")

    contact_info = _string(data, "contact_info")
    if len(contact_info) > CONTACT_INFO_MAX_LENGTH:
        raise ValidationError(f"contact_info must be {CONTACT_INFO_MAX_LENGTH} characters or less")

    image_url = _string(data, "image_url")
    if image_url and not _is_uri(image_url):
        raise ValidationError("image_url must be a valid URI")

    max_capacity = data.get("max_capacity", 0)
    if max_capacity is None:
        max_capacity = 0
    # bool is an int subclass; reject it explicitly
    if isinstance(max_capacity, bool) or not isinstance(max_capacity, int):
        if isinstance(max_capacity, float) and max_capacity.is_integer():
            max_capacity = int(max_capacity)
        else:
            raise ValidationError("max_capacity must be a whole number")
    if max_capacity < 0:
        raise ValidationError("max_capacity must be 0 or greater")
    if max_capacity > MAX_CAPACITY:
        raise ValidationError(f"max_capacity must be {MAX_CAPACITY} or less")

    tags = data.get("tags", [])
    if tags is None:
        tags = []
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise ValidationError("tags must be a list of strings")
    if len(tags) > MAX_TAGS:
        raise ValidationError(f"tags must contain at most {MAX_TAGS} items")

    return {
        "title": title,
        "description": description,
        "category": category,
        "date": event_date,
        "time": time,
        "location": location,
        "contact_info": contact_info,
        "image_url": image_url,
        "max_capacity": max_capacity,
        "tags": tags,
    }


def validate_comment_text(value: Any) -> str:
    """Return the trimmed comment text, or raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Comment text is required")
    if len(value) > COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters")
    return value.strip()
