"""
Application error taxonomy.

Every error carries the HTTP status it maps to and renders as
``{"error": ..., "details": ...}``. Services raise these; the API layer
renders them (see config.api).
"""

from typing import Any


class AppError(Exception):
    """Base exception for errors surfaced to API clients."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class AuthenticationError(AppError):
    """No authenticated principal on the request."""

    status_code = 401
    default_message = "Not authenticated"


class PermissionDeniedError(AppError):
    """Authenticated, but not allowed to perform this action."""

    status_code = 403
    default_message = "Permission denied"


class ValidationError(AppError):
    """Request is missing fields or carries invalid values."""

    status_code = 400
    default_message = "Invalid request"


class NotFoundError(AppError):
    """A referenced entity does not exist."""

    status_code = 404
    default_message = "Not found"
