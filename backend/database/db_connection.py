"""
PostgreSQL connection helper.
Provides get_db() for use by the repositories.
"""

import os
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

import psycopg2
from psycopg2.extras import DictCursor
from dotenv import load_dotenv

# Load .env variables from the project root
load_dotenv()

logger = logging.getLogger(__name__)

# Get the database URL from environment variable
DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")


def get_db():
    """
    Returns a new psycopg2 connection with dictionary-based row access.

    Usage:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(...)

    Leaving the `with` block commits (or rolls back on error) but does not
    close the connection; callers that care close it themselves.

    Returns:
        psycopg2.extensions.connection: A connection object with DictCursor factory.

    Raises:
        psycopg2.Error: If connection fails.
    """
    try:
        conn = psycopg2.connect(DATABASE_URL)
        # Rows come back as dictionaries, e.g. {"user_id": 1, "email": "..."}
        conn.cursor_factory = DictCursor
        return conn
    except psycopg2.Error as e:
        logger.error("Error connecting to database: %s", e)
        raise


class PgRepository:
    """
    Base class for the PostgreSQL repositories.

    Args:
        connect: zero-argument callable returning a DB-API connection.
                 Defaults to get_db().
    """

    def __init__(self, connect: Optional[Callable[[], Any]] = None):
        self._connect = connect or get_db

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """
        Yield a cursor inside one transaction.

        Commits when the block exits cleanly, rolls back on error, and
        always closes the connection.
        """
        conn = self._connect()
        try:
            with conn:
                with conn.cursor() as cur:
                    yield cur
        finally:
            conn.close()
