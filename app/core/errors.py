"""
Application error taxonomy.

Services raise these typed errors; a single set of exception handlers
registered in ``app.main`` translates them into the JSON envelope.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class BadRequestError(AppError):
    """Missing or invalid input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(AppError):
    """Bad credentials or a missing, invalid, expired or revoked token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized request"


class InvalidTokenError(UnauthorizedError):
    """Token failed signature, payload or expiry verification."""

    default_message = "Invalid token"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InternalError(AppError):
    """Unexpected failure, e.g. while persisting freshly issued tokens."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


class PayloadTooLargeError(AppError):
    """Uploaded file exceeds the configured size limit."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    default_message = "File too large"
