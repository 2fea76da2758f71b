from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bimigrate_core import __version__
from bimigrate_core.api.models import ApiResponse, fail, fail_from_error
from bimigrate_core.api.v1.router import router as v1_router
from bimigrate_core.config import load_core_config, resolve_configured_paths
from bimigrate_core.db import resolve_db_path
from bimigrate_core.db.migrate import apply_migrations
from bimigrate_core.errors import BiMigrateError
from bimigrate_core.home import ensure_bimigrate_layout, resolve_bimigrate_home
from bimigrate_core.logs import attach_core_log

logger = logging.getLogger(__name__)

# HTTP status -> envelope error code for errors raised outside the service layer.
_HTTP_ERROR_CODES: dict[int, str] = {
    404: "not_found",
    405: "method_not_allowed",
    409: "invalid_state",
    422: "validation_error",
}


def _envelope(status_code: int, body: ApiResponse[None]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BiMigrateError)
    async def _on_domain_error(request: Request, exc: BiMigrateError) -> JSONResponse:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code}: {exc.message}")
        return _envelope(exc.status_code, fail_from_error(exc))

    @app.exception_handler(RequestValidationError)
    async def _on_request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        body = fail(
            code="validation_error",
            message="Request validation failed",
            details=exc.errors(),
        )
        return _envelope(422, body)

    # fastapi.HTTPException subclasses the Starlette one, so this covers both.
    @app.exception_handler(StarletteHTTPException)
    async def _on_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        status = exc.status_code
        default = "client_error" if 400 <= status < 500 else "server_error"
        body = fail(
            code=_HTTP_ERROR_CODES.get(status, default),
            message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
        )
        return _envelope(status, body)

    @app.exception_handler(Exception)
    async def _on_unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        # Internals stay in the log, not the response.
        return _envelope(500, fail(code="internal_error", message="Internal server error"))


def create_app() -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        home = resolve_bimigrate_home()
        layout = ensure_bimigrate_layout(home)
        config = load_core_config(layout)
        paths = resolve_configured_paths(layout, config)

        attach_core_log(paths, config.logging)
        logger.info(f"BI Migrate Core {__version__} starting (home: {home})")

        db_path = resolve_db_path(paths)
        apply_migrations(db_path)
        logger.info(f"Database ready at {db_path}")

        app.state.bimigrate_home = home
        app.state.bimigrate_paths = paths
        app.state.bimigrate_config = config
        app.state.db_path = db_path

        yield

        logger.info("BI Migrate Core shutting down")

    app = FastAPI(title="BI Migrate Core", version=__version__, lifespan=_lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    _install_error_handlers(app)
    app.include_router(v1_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}

    return app
