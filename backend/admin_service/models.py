"""
Admin broadcast notifications.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from backend.auth_service.models import isoformat
from backend.common.errors import ValidationError

TITLE_MAX_LENGTH = 100
MESSAGE_MAX_LENGTH = 500
VALID_TYPES = ["info", "warning", "success", "error"]
VALID_PRIORITIES = ["low", "normal", "high"]
VALID_TARGETS = ["all", "admins", "specific"]


@dataclass
class Notification:
    title: str
    message: str
    created_by: int
    type: str = "info"
    priority: str = "normal"
    target_users: str = "all"
    specific_user_ids: List[int] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    is_active: bool = True
    notification_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Notification":
        return cls(
            notification_id=row["notification_id"],
            title=row["title"],
            message=row["message"],
            type=row["type"],
            priority=row["priority"],
            target_users=row["target_users"],
            specific_user_ids=list(row["specific_user_ids"] or []),
            created_by=row["created_by"],
            expires_at=row["expires_at"],
            is_active=row["is_active"],
            created_at=row["created_at"],
        )

    def to_dict(self, creator: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """`creator` replaces the bare createdBy id when the caller joined it."""
        return {
            "id": self.notification_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "priority": self.priority,
            "targetUsers": self.target_users,
            "specificUserIds": list(self.specific_user_ids),
            "createdBy": creator if creator is not None else self.created_by,
            "expiresAt": isoformat(self.expires_at),
            "isActive": self.is_active,
            "createdAt": isoformat(self.created_at),
        }


def _choice(data: Dict[str, Any], key: str, choices: List[str], default: str) -> str:
    value = data.get(key) or default
    if value not in choices:
        raise ValidationError(f"{key} must be one of: {', '.join(choices)}")
    return value


def parse_expires_at(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValidationError("expiresAt must be an ISO-8601 datetime")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError("expiresAt must be an ISO-8601 datetime")


def build_notification(data: Dict[str, Any], created_by: int) -> Notification:
    """
    Validate an admin's notification payload.

    Raises:
        ValidationError: naming the first rule that failed.
    """
    title = data.get("title")
    message = data.get("message")
    if not isinstance(title, str) or not isinstance(message, str) or not title.strip() or not message.strip():
        raise ValidationError("Title and message are required")

    title = title.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be {TITLE_MAX_LENGTH} characters or less")
    if len(message) > MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message must be {MESSAGE_MAX_LENGTH} characters or less")

    target_users = _choice(data, "targetUsers", VALID_TARGETS, "all")
    specific_user_ids: List[int] = []
    if target_users == "specific":
        ids = data.get("specificUserIds") or []
        if not isinstance(ids, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
            raise ValidationError("specificUserIds must be a list of user ids")
        specific_user_ids = ids

    return Notification(
        title=title,
        message=message,
        created_by=created_by,
        type=_choice(data, "type", VALID_TYPES, "info"),
        priority=_choice(data, "priority", VALID_PRIORITIES, "normal"),
        target_users=target_users,
        specific_user_ids=specific_user_ids,
        expires_at=parse_expires_at(data.get("expiresAt")),
    )
