from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from bimigrate_core.errors import BiMigrateError


class ApiError(BaseModel):
    code: str
    message: str
    details: Any | None = None


class ApiResponse[T](BaseModel):
    """Envelope for every JSON response: `data` on success, `error` otherwise."""

    ok: bool
    data: T | None = None
    error: ApiError | None = None


def ok[T](data: T) -> ApiResponse[T]:
    return ApiResponse(ok=True, data=data)


def fail(*, code: str, message: str, details: Any | None = None) -> ApiResponse[None]:
    return ApiResponse(ok=False, error=ApiError(code=code, message=message, details=details))


def fail_from_error(exc: BiMigrateError) -> ApiResponse[None]:
    return fail(code=exc.code, message=exc.message, details=exc.details)
