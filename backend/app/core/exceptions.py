"""Errors raised by the import API and rendered by the handler in ``app.main``."""

from __future__ import annotations

from typing import Any


class HelpdeskException(Exception):
    """Base error carrying the HTTP status and a machine-readable code."""

    status_code = 400
    error_code: str | None = None

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        self.status_code = status_code or self.status_code
        self.headers = headers

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class BadRequestError(HelpdeskException):
    error_code = "BAD_REQUEST"


class PayloadTooLargeError(HelpdeskException):
    status_code = 413
    error_code = "PAYLOAD_TOO_LARGE"

    def __init__(self, *, limit_bytes: int):
        super().__init__("file_too_large", details={"limit_bytes": limit_bytes})


class RateLimitExceeded(HelpdeskException):
    status_code = 429
    error_code = "RATE_LIMIT"

    def __init__(self, *, retry_after: int, limit: int, window_seconds: int):
        super().__init__(
            "rate_limit_exceeded",
            details={"retry_after": retry_after, "limit": limit, "window_seconds": window_seconds},
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Window": str(window_seconds),
            },
        )


# Import files


class ImportFormatError(HelpdeskException):
    """The uploaded export cannot be read as a whole; nothing was written."""

    default_message = "Unreadable export file."

    def __init__(self, message: str | None = None, *, kind: str | None = None):
        super().__init__(message or self.default_message, details={"kind": kind} if kind else None)


class InvalidFormatError(ImportFormatError):
    """Valid JSON, but neither a ticket array nor a ``{"tickets": [...]}`` document."""

    error_code = "INVALID_IMPORT_FORMAT"
    default_message = "Invalid Zendesk export format."


class EmptyOrUnparseableError(ImportFormatError):
    error_code = "EMPTY_OR_UNPARSEABLE"
    default_message = "Could not parse any records from the file."


# Authentication


class AuthenticationException(HelpdeskException):
    status_code = 401


class ExpiredTokenError(AuthenticationException):
    error_code = "EXPIRED_TOKEN"

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message)


class InsufficientPermissionsError(AuthenticationException):
    status_code = 403
    error_code = "INSUFFICIENT_PERMISSIONS"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message)
