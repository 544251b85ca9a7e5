"""
User persistence.

`UserRepository` is the interface the views depend on; `PgUserRepository`
implements it against the `users` table.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

import psycopg2.errors

from backend.auth_service.models import User
from backend.common.errors import ConflictError
from backend.database.db_connection import PgRepository

USER_COLUMNS = "user_id, username, email, password_hash, zipcode, is_admin, last_login, created_at"


def conflict_for(field: str) -> ConflictError:
    """ConflictError with the user-facing message for a duplicate field."""
    if field == "email":
        message = "This email is already registered. Please use a different email or try logging in."
    else:
        message = "This username is already taken. Please choose a different username."
    return ConflictError(message, field=field)


class UserRepository(ABC):

    @abstractmethod
    def get(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup."""

    @abstractmethod
    def find_conflict(self, username: str, email: str) -> Optional[User]:
        """Any user whose username or email matches, ignoring case."""

    @abstractmethod
    def add(self, user: User) -> User:
        """
        Insert a new user and return it with id and created_at set.

        Raises:
            ConflictError: the username or email is already taken.
        """

    @abstractmethod
    def record_login(self, user_id: int, when: datetime) -> None: ...

    @abstractmethod
    def set_admin(self, user_id: int, is_admin: bool = True) -> None: ...

    @abstractmethod
    def delete(self, user_id: int) -> bool: ...

    @abstractmethod
    def list_page(self, offset: int, limit: int) -> List[User]:
        """Newest accounts first."""

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def list_active(self, since: datetime, offset: int, limit: int) -> List[User]:
        """Users who logged in at or after `since`, most recent login first."""

    @abstractmethod
    def count_active(self, since: datetime) -> int: ...

    @abstractmethod
    def count_admins(self) -> int: ...

    @abstractmethod
    def count_created_since(self, since: datetime) -> int: ...


class PgUserRepository(PgRepository, UserRepository):

    def get(self, user_id: int) -> Optional[User]:
        with self.transaction() as cur:
            cur.execute(f"SELECT {USER_COLUMNS} FROM users WHERE user_id = %s;", (user_id,))
            row = cur.fetchone()
        return User.from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with self.transaction() as cur:
            cur.execute(f"SELECT {USER_COLUMNS} FROM users WHERE LOWER(email) = LOWER(%s);", (email,))
            row = cur.fetchone()
        return User.from_row(row) if row else None

    def find_conflict(self, username: str, email: str) -> Optional[User]:
        sql = f"""
            SELECT {USER_COLUMNS} FROM users
            WHERE LOWER(email) = LOWER(%s) OR LOWER(username) = LOWER(%s)
            ORDER BY (LOWER(email) = LOWER(%s)) DESC
            LIMIT 1;
        """
        with self.transaction() as cur:
            cur.execute(sql, (email, username, email))
            row = cur.fetchone()
        return User.from_row(row) if row else None

    def add(self, user: User) -> User:
        sql = f"""
            INSERT INTO users (username, email, password_hash, zipcode, is_admin)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {USER_COLUMNS};
        """
        try:
            with self.transaction() as cur:
                cur.execute(sql, (user.username, user.email, user.password_hash, user.zipcode, user.is_admin))
                row = cur.fetchone()
        except psycopg2.errors.UniqueViolation as e:
            # The unique indexes are the final word when two registrations race.
            constraint = getattr(getattr(e, "diag", None), "constraint_name", None) or str(e)
            raise conflict_for("email" if "email" in constraint else "username")
        return User.from_row(row)

    def record_login(self, user_id: int, when: datetime) -> None:
        with self.transaction() as cur:
            cur.execute("UPDATE users SET last_login = %s WHERE user_id = %s;", (when, user_id))

    def set_admin(self, user_id: int, is_admin: bool = True) -> None:
        with self.transaction() as cur:
            cur.execute("UPDATE users SET is_admin = %s WHERE user_id = %s;", (is_admin, user_id))

    def delete(self, user_id: int) -> bool:
        with self.transaction() as cur:
            cur.execute("DELETE FROM users WHERE user_id = %s;", (user_id,))
            return cur.rowcount > 0

    def list_page(self, offset: int, limit: int) -> List[User]:
        sql = f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at DESC OFFSET %s LIMIT %s;"
        with self.transaction() as cur:
            cur.execute(sql, (offset, limit))
            return [User.from_row(row) for row in cur.fetchall()]

    def count(self) -> int:
        return self._scalar("SELECT COUNT(*) FROM users;")

    def list_active(self, since: datetime, offset: int, limit: int) -> List[User]:
        sql = f"""
            SELECT {USER_COLUMNS} FROM users
            WHERE last_login >= %s
            ORDER BY last_login DESC
            OFFSET %s LIMIT %s;
        """
        with self.transaction() as cur:
            cur.execute(sql, (since, offset, limit))
            return [User.from_row(row) for row in cur.fetchall()]

    def count_active(self, since: datetime) -> int:
        return self._scalar("SELECT COUNT(*) FROM users WHERE last_login >= %s;", (since,))

    def count_admins(self) -> int:
        return self._scalar("SELECT COUNT(*) FROM users WHERE is_admin;")

    def count_created_since(self, since: datetime) -> int:
        return self._scalar("SELECT COUNT(*) FROM users WHERE created_at >= %s;", (since,))

    def _scalar(self, sql: str, params: tuple = ()) -> int:
        with self.transaction() as cur:
            cur.execute(sql, params)
            return cur.fetchone()[0]
