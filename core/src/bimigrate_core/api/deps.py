from __future__ import annotations

from pathlib import Path

from fastapi import HTTPException, Request


def get_db_path(request: Request) -> Path:
    db_path = getattr(request.app.state, "db_path", None)
    if db_path is None:
        raise HTTPException(status_code=500, detail="DB not initialized")
    return db_path
