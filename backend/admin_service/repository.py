"""
Notification persistence.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from backend.admin_service.models import Notification
from backend.database.db_connection import PgRepository

NOTIFICATION_COLUMNS = """
    n.notification_id, n.title, n.message, n.type, n.priority, n.target_users,
    n.specific_user_ids, n.created_by, n.expires_at, n.is_active, n.created_at
"""


class NotificationRepository(ABC):

    @abstractmethod
    def add(self, notification: Notification) -> Notification: ...

    @abstractmethod
    def delete(self, notification_id: int) -> bool: ...

    @abstractmethod
    def list_page(self, offset: int, limit: int) -> List[Tuple[Notification, Optional[Dict[str, Any]]]]:
        """Newest first, each paired with its creator's {id, username, email}."""

    @abstractmethod
    def count(self) -> int: ...


class PgNotificationRepository(PgRepository, NotificationRepository):

    def add(self, notification: Notification) -> Notification:
        sql = f"""
            INSERT INTO notifications AS n (
                title, message, type, priority, target_users,
                specific_user_ids, created_by, expires_at, is_active
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {NOTIFICATION_COLUMNS};
        """
        with self.transaction() as cur:
            cur.execute(sql, (
                notification.title, notification.message, notification.type,
                notification.priority, notification.target_users,
                list(notification.specific_user_ids), notification.created_by,
                notification.expires_at, notification.is_active,
            ))
            row = cur.fetchone()
        return Notification.from_row(row)

    def delete(self, notification_id: int) -> bool:
        with self.transaction() as cur:
            cur.execute("DELETE FROM notifications WHERE notification_id = %s;", (notification_id,))
            return cur.rowcount > 0

    def list_page(self, offset: int, limit: int) -> List[Tuple[Notification, Optional[Dict[str, Any]]]]:
        sql = f"""
            SELECT {NOTIFICATION_COLUMNS},
                   u.username AS creator_username, u.email AS creator_email
            FROM notifications n
            LEFT JOIN users u ON n.created_by = u.user_id
            ORDER BY n.created_at DESC
            OFFSET %s LIMIT %s;
        """
        with self.transaction() as cur:
            cur.execute(sql, (offset, limit))
            rows = cur.fetchall()

        page = []
        for row in rows:
            creator = None
            if row["creator_username"] is not None:
                creator = {"id": row["created_by"], "username": row["creator_username"], "email": row["creator_email"]}
            page.append((Notification.from_row(row), creator))
        return page

    def count(self) -> int:
        with self.transaction() as cur:
            cur.execute("SELECT COUNT(*) FROM notifications;")
            return cur.fetchone()[0]
