from __future__ import annotations

from pathlib import Path

import pytest

from bimigrate_core.db.migrate import apply_migrations


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "db" / "core.sqlite3"
    apply_migrations(path)
    return path
