"""
Domain exceptions.

Raised close to the point of failure and translated into HTTP responses
exactly once, by the handlers in src/base/core/error_handlers.py.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors with a stable client-facing shape."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "InternalServerError"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_content(self) -> dict[str, str]:
        return {"error": self.error, "message": self.message}


class DomainValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "ValidationError"
    default_message = "Invalid input"


class UnauthorizedError(AppError):
    """Authentication failed. `reason` is logged, never sent to the client."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthorized"
    default_message = "Authentication required"

    TOKEN_MISSING = "TokenMissing"
    TOKEN_INVALID_OR_EXPIRED = "TokenInvalidOrExpired"
    INVALID_CREDENTIALS = "InvalidCredentials"

    def __init__(self, message: str | None = None, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Forbidden"
    default_message = "You do not have permission to access this resource"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "NotFound"
    default_message = "User not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"
    default_message = "E-mail already registered"

    def to_content(self) -> dict[str, str]:
        return {"conflict": self.error, "message": self.message}
