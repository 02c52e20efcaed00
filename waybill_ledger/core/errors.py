"""
Application error types.

Services raise these exceptions for every business-rule violation. The server
registers a handler that maps them to HTTP responses using ``status_code``
and exposes ``code`` so clients can react to specific failures.
"""

from __future__ import annotations

from typing import Optional


class AppError(Exception):
    """Base class for errors that carry an HTTP status and a machine code."""

    status_code: int = 500
    default_code: Optional[str] = None

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if status_code is not None:
            self.status_code = status_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, code={self.code!r})"


class BadRequestError(AppError):
    status_code = 400
    default_code = "BAD_REQUEST"


class UnauthorizedError(AppError):
    status_code = 401
    default_code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    default_code = "CONFLICT"


# Machine codes for business-rule failures
ODOMETER_CONFLICT = "ODOMETER_CONFLICT"
CHAIN_INTEGRITY_ERROR = "CHAIN_INTEGRITY_ERROR"
NORM_EXCEEDED = "NORM_EXCEEDED"
INSUFFICIENT_TANK_FUEL = "INSUFFICIENT_TANK_FUEL"
INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
DUPLICATE_EXTERNAL_REF = "DUPLICATE_EXTERNAL_REF"
PERIOD_LOCKED = "PERIOD_LOCKED"
DELETE_POSTED_FORBIDDEN = "DELETE_POSTED_FORBIDDEN"
INVALID_TRANSITION = "INVALID_TRANSITION"
BLANK_NOT_AVAILABLE = "BLANK_NOT_AVAILABLE"
