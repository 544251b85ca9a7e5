"""
User model for the authentication service.

A `User` mirrors one row of the `users` table. The password hash stays on
the object for verification but is never part of `to_dict()`.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class User:
    username: str
    email: str
    password_hash: str
    zipcode: str
    is_admin: bool = False
    user_id: Optional[int] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "User":
        return cls(
            user_id=row["user_id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            zipcode=row["zipcode"],
            is_admin=row["is_admin"],
            last_login=row["last_login"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Outward representation, used by the admin listings."""
        return {
            "id": self.user_id,
            "username": self.username,
            "email": self.email,
            "zipcode": self.zipcode,
            "isAdmin": self.is_admin,
            "lastLogin": isoformat(self.last_login),
            "createdAt": isoformat(self.created_at),
        }
