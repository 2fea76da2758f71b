from __future__ import annotations

from typing import Any


class BiMigrateError(Exception):
    """Base class for errors surfaced to API callers.

    `code` is the stable machine-readable identifier placed in the error
    envelope; `status_code` is the HTTP status the API layer responds with.
    """

    code: str = "error"
    status_code: int = 400

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(BiMigrateError):
    code = "validation_error"
    status_code = 422


class NotFoundError(BiMigrateError):
    code = "not_found"
    status_code = 404


class InvalidStateError(BiMigrateError):
    code = "invalid_state"
    status_code = 409
