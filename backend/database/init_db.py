"""
Apply schema.sql to the database named by DATABASE_URL.

Every statement in the schema is idempotent, so this can be run on each
deploy.

Usage:
    python -m backend.database.init_db
"""

import logging
import sys
from pathlib import Path

import psycopg2

from backend.database.db_connection import get_db

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

# Tables the services expect to find after the schema is applied
REQUIRED_TABLES = ["users", "events", "event_rsvps", "event_favorites", "event_comments", "notifications"]


def init_db(schema_path: Path = SCHEMA_PATH) -> list:
    """
    Run the schema script and report which required tables are missing.

    Returns:
        list: names of required tables that still do not exist (empty on success).
    """
    sql = schema_path.read_text()
    conn = get_db()
    try:
        with conn:
            with conn.cursor() as cur:
                cur.execute(sql)
                missing = []
                for table in REQUIRED_TABLES:
                    cur.execute("SELECT to_regclass(%s);", (table,))
                    if cur.fetchone()[0] is None:
                        missing.append(table)
    finally:
        conn.close()
    return missing


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    try:
        missing = init_db()
    except psycopg2.Error as e:
        logging.error("Applying schema failed: %s", e)
        return 1

    if missing:
        logging.error("Schema applied but tables are missing: %s", ", ".join(missing))
        return 1

    logging.info("Schema applied; all %d tables present.", len(REQUIRED_TABLES))
    return 0


if __name__ == "__main__":
    sys.exit(main())
