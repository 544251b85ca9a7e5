"""
Event aggregate.

An `Event` owns its RSVP list, favorites and comments. All changes to those
collections go through the mutators below so the invariants hold in one
place:

- at most one RSVP per user, and no entry at all for "not going";
- attendee counters are computed from the RSVP list, never stored;
- a user appears in favorites at most once;
- comments are only ever appended.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from backend.auth_service.models import isoformat
from backend.common.errors import ValidationError


class RsvpStatus(Enum):
    NONE = ""
    GOING = "going"
    INTERESTED = "interested"

    @classmethod
    def parse(cls, value: Any) -> "RsvpStatus":
        """
        Map a request value to a status.

        "going" and "interested" map to themselves; "not_going" and "" both
        mean no RSVP. Anything else is rejected.
        """
        if value == "not_going":
            return cls.NONE
        if isinstance(value, str):
            for status in cls:
                if status.value == value:
                    return status
        raise ValidationError("Invalid RSVP status")


@dataclass
class Rsvp:
    user_id: int
    status: RsvpStatus


@dataclass
class Comment:
    user_id: int
    username: str
    text: str
    created_at: datetime
    comment_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.comment_id,
            "user_id": self.user_id,
            "username": self.username,
            "text": self.text,
            "created_at": isoformat(self.created_at),
        }


@dataclass
class Event:
    title: str
    category: str
    date: str
    location: str
    organizer: str
    organizer_id: int
    description: str = ""
    time: str = ""
    contact_info: str = ""
    image_url: str = ""
    max_capacity: int = 0
    tags: List[str] = field(default_factory=list)
    event_id: Optional[int] = None
    rsvps: List[Rsvp] = field(default_factory=list)
    favorites: List[int] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Fields an organizer may set through create/update
    EDITABLE_FIELDS = (
        "title", "description", "category", "date", "time", "location",
        "contact_info", "image_url", "max_capacity", "tags",
    )

    @property
    def attendees_going(self) -> int:
        return sum(1 for r in self.rsvps if r.status is RsvpStatus.GOING)

    @property
    def attendees_interested(self) -> int:
        return sum(1 for r in self.rsvps if r.status is RsvpStatus.INTERESTED)

    def apply_fields(self, fields: Dict[str, Any]) -> None:
        """Overwrite the editable fields present in `fields`."""
        for key in self.EDITABLE_FIELDS:
            if key in fields:
                setattr(self, key, fields[key])

    # --- RSVP ---
    def rsvp_status_for(self, user_id: Optional[int]) -> RsvpStatus:
        for rsvp in self.rsvps:
            if rsvp.user_id == user_id:
                return rsvp.status
        return RsvpStatus.NONE

    def set_rsvp(self, user_id: int, status: RsvpStatus) -> None:
        """
        Last write wins: drop the user's current entry, then append a fresh
        one unless the new status is NONE.
        """
        self.rsvps = [r for r in self.rsvps if r.user_id != user_id]
        if status is not RsvpStatus.NONE:
            self.rsvps.append(Rsvp(user_id=user_id, status=status))

    # --- FAVORITES ---
    def is_favorited_by(self, user_id: Optional[int]) -> bool:
        return user_id is not None and user_id in self.favorites

    def set_favorite(self, user_id: int, favorited: bool) -> bool:
        """Add or remove the user; returns False when nothing changed."""
        present = user_id in self.favorites
        if favorited and not present:
            self.favorites.append(user_id)
            return True
        if not favorited and present:
            self.favorites.remove(user_id)
            return True
        return False

    # --- COMMENTS ---
    def add_comment(self, user_id: int, username: str, text: str, now: datetime) -> Comment:
        comment = Comment(user_id=user_id, username=username, text=text, created_at=now)
        self.comments.append(comment)
        return comment

    def comments_newest_first(self) -> List[Comment]:
        # Stable sort keeps insertion order reversed for identical timestamps.
        ordered = list(reversed(self.comments))
        return sorted(ordered, key=lambda c: c.created_at, reverse=True)

    # --- PROJECTION ---
    def to_client_dict(self, viewer_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Client view of the event, including the viewer's own RSVP status and
        favorite flag. Anonymous viewers get "" and False.
        """
        return {
            "id": self.event_id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "date": self.date,
            "time": self.time,
            "location": self.location,
            "contact_info": self.contact_info,
            "image_url": self.image_url,
            "max_capacity": self.max_capacity,
            "tags": list(self.tags),
            "organizer": self.organizer,
            "organizer_id": self.organizer_id,
            "attendees_going": self.attendees_going,
            "attendees_interested": self.attendees_interested,
            "rsvps": [{"user_id": r.user_id, "status": r.status.value} for r in self.rsvps],
            "favorites": list(self.favorites),
            "comments": [c.to_dict() for c in self.comments_newest_first()],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
            "viewer_rsvp_status": self.rsvp_status_for(viewer_id).value if viewer_id is not None else "",
            "is_favorited": self.is_favorited_by(viewer_id),
        }
