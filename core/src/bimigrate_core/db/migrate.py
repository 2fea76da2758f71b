from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path

from bimigrate_core.db.migrations import MIGRATIONS

logger = logging.getLogger(__name__)

_LEDGER_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    name TEXT PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
""".strip()


def _applied_names(conn: sqlite3.Connection) -> set[str]:
    return {name for (name,) in conn.execute("SELECT name FROM schema_migrations;")}


def schema_version(db_path: Path) -> str | None:
    """Name of the newest applied migration, or None for a blank database."""

    if not db_path.exists():
        return None
    with closing(sqlite3.connect(db_path)) as conn, conn:
        conn.execute(_LEDGER_DDL)
        applied = _applied_names(conn)

    known = [name for name, _ in MIGRATIONS if name in applied]
    return known[-1] if known else None


def apply_migrations(db_path: Path) -> list[str]:
    """Bring the database at `db_path` up to the latest schema.

    Creates the parent directory and the file as needed. Already-applied migrations
    are skipped, so repeated calls are no-ops. Returns the names applied by this call.
    """

    db_path.parent.mkdir(parents=True, exist_ok=True)

    newly_applied: list[str] = []
    with closing(sqlite3.connect(db_path)) as conn, conn:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(_LEDGER_DDL)
        applied = _applied_names(conn)

        for name, sql in MIGRATIONS:
            if name in applied:
                continue
            logger.info("Applying migration %s to %s", name, db_path)
            conn.executescript(sql)
            conn.execute("INSERT INTO schema_migrations (name) VALUES (?);", (name,))
            newly_applied.append(name)

    return newly_applied
