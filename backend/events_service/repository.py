"""
Event persistence.

The aggregate is spread over four tables (events, event_rsvps,
event_favorites, event_comments) but is always loaded and written as a
whole. RSVP, favorite and comment changes go through `mutate()`, which
holds a row lock on the event for the whole read-modify-write so two
concurrent interactions on the same event cannot interleave.
"""

from abc import ABC, abstractmethod
from datetime import date as date_type
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from backend.common.errors import NotFoundError
from backend.database.db_connection import PgRepository
from backend.events_service.models import Comment, Event, Rsvp, RsvpStatus

T = TypeVar("T")

EVENT_COLUMNS = """
    e.event_id, e.title, e.description, e.category, e.date, e.time, e.location,
    e.contact_info, e.image_url, e.max_capacity, e.tags, e.organizer, e.organizer_id,
    e.created_at, e.updated_at
"""


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def event_from_row(row: Dict[str, Any]) -> Event:
    event_date = row["date"]
    if isinstance(event_date, date_type):
        event_date = event_date.isoformat()
    return Event(
        event_id=row["event_id"],
        title=row["title"],
        description=row["description"],
        category=row["category"],
        date=event_date,
        time=row["time"],
        location=row["location"],
        contact_info=row["contact_info"],
        image_url=row["image_url"],
        max_capacity=row["max_capacity"],
        tags=list(row["tags"] or []),
        organizer=row["organizer"],
        organizer_id=row["organizer_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class EventRepository(ABC):

    @abstractmethod
    def get(self, event_id: int) -> Optional[Event]: ...

    @abstractmethod
    def list(self, category: Optional[str] = None, search: Optional[str] = None) -> List[Event]:
        """
        Events filtered by exact category and/or a case-insensitive
        substring of title, description or location. Ordered by date
        ascending, newest-created first within a date.
        """

    @abstractmethod
    def add(self, event: Event) -> Event:
        """Insert a new event; returns it with id and timestamps set."""

    @abstractmethod
    def save(self, event: Event) -> Event:
        """Persist the editable fields and updated_at of an existing event."""

    @abstractmethod
    def delete(self, event_id: int) -> bool: ...

    @abstractmethod
    def delete_by_organizer(self, organizer_id: int) -> int:
        """Delete every event owned by the user; returns how many went."""

    @abstractmethod
    def mutate(self, event_id: int, fn: Callable[[Event], T]) -> T:
        """
        Apply `fn` to the loaded aggregate and persist its RSVPs, favorites
        and new comments as one unit.

        Raises:
            NotFoundError: no such event.
        """

    @abstractmethod
    def list_page(self, offset: int, limit: int) -> List[Tuple[Event, Optional[Dict[str, Any]]]]:
        """
        Newest events first, each paired with its organizer's
        {id, username, email} (None if the account is gone).
        """

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def count_upcoming(self, today: str) -> int:
        """Events dated on or after `today` (YYYY-MM-DD)."""

    @abstractmethod
    def count_by_category(self) -> List[Tuple[str, int]]:
        """(category, count) pairs, largest count first."""


class PgEventRepository(PgRepository, EventRepository):

    def get(self, event_id: int) -> Optional[Event]:
        with self.transaction() as cur:
            cur.execute(f"SELECT {EVENT_COLUMNS} FROM events e WHERE e.event_id = %s;", (event_id,))
            row = cur.fetchone()
            if not row:
                return None
            event = event_from_row(row)
            self._load_collections(cur, [event])
        return event

    def list(self, category: Optional[str] = None, search: Optional[str] = None) -> List[Event]:
        sql = f"SELECT {EVENT_COLUMNS} FROM events e"
        conditions = []
        params: List[Any] = []

        if category:
            conditions.append("e.category = %s")
            params.append(category)

        if search:
            pattern = f"%{escape_like(search)}%"
            conditions.append("(e.title ILIKE %s OR e.description ILIKE %s OR e.location ILIKE %s)")
            params.extend([pattern, pattern, pattern])

        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY e.date ASC, e.created_at DESC;"

        with self.transaction() as cur:
            cur.execute(sql, params)
            events = [event_from_row(row) for row in cur.fetchall()]
            self._load_collections(cur, events)
        return events

    def add(self, event: Event) -> Event:
        sql = f"""
            INSERT INTO events AS e (
                title, description, category, date, time, location,
                contact_info, image_url, max_capacity, tags, organizer, organizer_id
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {EVENT_COLUMNS};
        """
        with self.transaction() as cur:
            cur.execute(sql, (
                event.title, event.description, event.category, event.date, event.time,
                event.location, event.contact_info, event.image_url, event.max_capacity,
                list(event.tags), event.organizer, event.organizer_id,
            ))
            row = cur.fetchone()
        return event_from_row(row)

    def save(self, event: Event) -> Event:
        sql = f"""
            UPDATE events e SET
                title = %s, description = %s, category = %s, date = %s, time = %s,
                location = %s, contact_info = %s, image_url = %s, max_capacity = %s,
                tags = %s, updated_at = COALESCE(%s, CURRENT_TIMESTAMP)
            WHERE e.event_id = %s
            RETURNING {EVENT_COLUMNS};
        """
        with self.transaction() as cur:
            cur.execute(sql, (
                event.title, event.description, event.category, event.date, event.time,
                event.location, event.contact_info, event.image_url, event.max_capacity,
                list(event.tags), event.updated_at, event.event_id,
            ))
            row = cur.fetchone()
            if not row:
                raise NotFoundError("Event not found")
            saved = event_from_row(row)
            self._load_collections(cur, [saved])
        return saved

    def delete(self, event_id: int) -> bool:
        with self.transaction() as cur:
            cur.execute("DELETE FROM events WHERE event_id = %s;", (event_id,))
            return cur.rowcount > 0

    def delete_by_organizer(self, organizer_id: int) -> int:
        with self.transaction() as cur:
            cur.execute("DELETE FROM events WHERE organizer_id = %s;", (organizer_id,))
            return cur.rowcount

    def mutate(self, event_id: int, fn: Callable[[Event], T]) -> T:
        with self.transaction() as cur:
            cur.execute(f"SELECT {EVENT_COLUMNS} FROM events e WHERE e.event_id = %s FOR UPDATE;", (event_id,))
            row = cur.fetchone()
            if not row:
                raise NotFoundError("Event not found")
            event = event_from_row(row)
            self._load_collections(cur, [event])
            result = fn(event)
            self._write_collections(cur, event)
        return result

    def list_page(self, offset: int, limit: int) -> List[Tuple[Event, Optional[Dict[str, Any]]]]:
        sql = f"""
            SELECT {EVENT_COLUMNS},
                   u.user_id AS organizer_user_id, u.username AS organizer_username,
                   u.email AS organizer_email
            FROM events e
            LEFT JOIN users u ON e.organizer_id = u.user_id
            ORDER BY e.created_at DESC
            OFFSET %s LIMIT %s;
        """
        with self.transaction() as cur:
            cur.execute(sql, (offset, limit))
            rows = cur.fetchall()
            events = [event_from_row(row) for row in rows]
            self._load_collections(cur, events)

        page = []
        for event, row in zip(events, rows):
            organizer = None
            if row["organizer_user_id"] is not None:
                organizer = {
                    "id": row["organizer_user_id"],
                    "username": row["organizer_username"],
                    "email": row["organizer_email"],
                }
            page.append((event, organizer))
        return page

    def count(self) -> int:
        with self.transaction() as cur:
            cur.execute("SELECT COUNT(*) FROM events;")
            return cur.fetchone()[0]

    def count_upcoming(self, today: str) -> int:
        with self.transaction() as cur:
            cur.execute("SELECT COUNT(*) FROM events WHERE date >= %s;", (today,))
            return cur.fetchone()[0]

    def count_by_category(self) -> List[Tuple[str, int]]:
        sql = """
            SELECT category, COUNT(*) AS count
            FROM events
            GROUP BY category
            ORDER BY count DESC, category ASC;
        """
        with self.transaction() as cur:
            cur.execute(sql)
            return [(row["category"], row["count"]) for row in cur.fetchall()]

    # --- COLLECTIONS ---
    def _load_collections(self, cur: Any, events: List[Event]) -> None:
        """Attach RSVPs, favorites and comments to already-loaded events."""
        if not events:
            return
        by_id = {event.event_id: event for event in events}
        ids = list(by_id)

        cur.execute(
            "SELECT event_id, user_id, rsvp_status FROM event_rsvps "
            "WHERE event_id = ANY(%s) ORDER BY position ASC;",
            (ids,),
        )
        for row in cur.fetchall():
            by_id[row["event_id"]].rsvps.append(
                Rsvp(user_id=row["user_id"], status=RsvpStatus(row["rsvp_status"]))
            )

        cur.execute(
            "SELECT event_id, user_id FROM event_favorites "
            "WHERE event_id = ANY(%s) ORDER BY position ASC;",
            (ids,),
        )
        for row in cur.fetchall():
            by_id[row["event_id"]].favorites.append(row["user_id"])

        cur.execute(
            "SELECT comment_id, event_id, user_id, username, text, created_at FROM event_comments "
            "WHERE event_id = ANY(%s) ORDER BY created_at ASC, comment_id ASC;",
            (ids,),
        )
        for row in cur.fetchall():
            by_id[row["event_id"]].comments.append(Comment(
                comment_id=row["comment_id"],
                user_id=row["user_id"],
                username=row["username"],
                text=row["text"],
                created_at=row["created_at"],
            ))

    def _write_collections(self, cur: Any, event: Event) -> None:
        """Replace RSVPs and favorites; insert comments that have no id yet."""
        cur.execute("DELETE FROM event_rsvps WHERE event_id = %s;", (event.event_id,))
        if event.rsvps:
            cur.executemany(
                "INSERT INTO event_rsvps (event_id, user_id, rsvp_status, position) VALUES (%s, %s, %s, %s);",
                [(event.event_id, r.user_id, r.status.value, i) for i, r in enumerate(event.rsvps)],
            )

        cur.execute("DELETE FROM event_favorites WHERE event_id = %s;", (event.event_id,))
        if event.favorites:
            cur.executemany(
                "INSERT INTO event_favorites (event_id, user_id, position) VALUES (%s, %s, %s);",
                [(event.event_id, user_id, i) for i, user_id in enumerate(event.favorites)],
            )

        # Comments are append-only; existing rows are never touched.
        for comment in event.comments:
            if comment.comment_id is not None:
                continue
            cur.execute(
                "INSERT INTO event_comments (event_id, user_id, username, text, created_at) "
                "VALUES (%s, %s, %s, %s, %s) RETURNING comment_id;",
                (event.event_id, comment.user_id, comment.username, comment.text, comment.created_at),
            )
            comment.comment_id = cur.fetchone()["comment_id"]
