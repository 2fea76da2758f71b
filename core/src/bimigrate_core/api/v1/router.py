from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel

from bimigrate_core import __version__
from bimigrate_core.api.models import ApiResponse, ok
from bimigrate_core.api.v1.assets import router as assets_router
from bimigrate_core.api.v1.connections import router as connections_router
from bimigrate_core.api.v1.migration_jobs import router as migration_jobs_router
from bimigrate_core.db.migrate import schema_version

router = APIRouter(prefix="/v1", tags=["v1"])

router.include_router(connections_router)
router.include_router(assets_router)
router.include_router(migration_jobs_router)


class SystemInfo(BaseModel):
    version: str
    schema_version: str | None = None
    bimigrate_home: str
    paths: dict[str, str]


@router.get("/ping", response_model=ApiResponse[dict[str, bool]])
async def ping() -> ApiResponse[dict[str, bool]]:
    return ok({"pong": True})


@router.get("/system/info", response_model=ApiResponse[SystemInfo])
async def system_info(request: Request) -> ApiResponse[SystemInfo]:
    # Runtime identity and resolved paths only; no config values.
    home = getattr(request.app.state, "bimigrate_home", None)
    paths = getattr(request.app.state, "bimigrate_paths", None)
    db_path = getattr(request.app.state, "db_path", None)

    info = SystemInfo(
        version=__version__,
        schema_version=schema_version(db_path) if db_path is not None else None,
        bimigrate_home=str(home) if home is not None else "",
        paths={
            "db_dir": str(paths.db_dir) if paths is not None else "",
            "logs_dir": str(paths.logs_dir) if paths is not None else "",
            "config_dir": str(paths.config_dir) if paths is not None else "",
            "db_path": str(db_path) if db_path is not None else "",
        },
    )
    return ok(info)
