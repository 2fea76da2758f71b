from __future__ import annotations

from pathlib import Path

from bimigrate_core.home import BiMigratePaths

DEFAULT_DB_FILENAME = "core.sqlite3"


def resolve_db_path(paths: BiMigratePaths) -> Path:
    """Resolve the Core SQLite database path.

    The directory follows the `db_dir` layout entry or its config override.
    """

    return paths.db_dir / DEFAULT_DB_FILENAME
