"""Typed API errors.

Every error is an ``HTTPException`` whose ``detail`` is a dict with ``code`` and
``message``; ``app.main`` turns it into the failure envelope.
"""

from __future__ import annotations

from fastapi import HTTPException


class AppError(HTTPException):
    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Bad request"

    def __init__(self, message: str | None = None, *, code: str | None = None):
        self.message = message or self.default_message
        super().__init__(
            status_code=self.status_code,
            detail={"code": code or self.code, "message": self.message},
        )


class ValidationFailed(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class InvalidId(AppError):
    status_code = 400
    code = "INVALID_ID"
    default_message = "Invalid id"


class InvalidType(AppError):
    status_code = 400
    code = "INVALID_TYPE"
    default_message = "Invalid item type"


class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class InvalidToken(AppError):
    status_code = 401
    code = "INVALID_TOKEN"
    default_message = "Invalid token"


class InvalidCredentials(AppError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Conflict"


class DependencyUnavailable(AppError):
    status_code = 503
    code = "DB_NOT_CONNECTED"
    default_message = "Database not connected"


class JoinCodeUnavailable(AppError):
    status_code = 500
    code = "JOIN_CODE_UNAVAILABLE"
    default_message = "Failed to generate a join code"
