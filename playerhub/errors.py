"""
Domain errors for PlayerHub.
Each error carries the HTTP status and client-facing message the route
layer renders; internal detail stays in the server log.
"""

from fastapi import status


class PlayerHubError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCredentials(PlayerHubError):
    """Unknown username or wrong password. The two are never distinguished."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid username or password"


class Unauthorized(PlayerHubError):
    """No session, or the session is invalid or expired."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class ValidationError(PlayerHubError):
    """Malformed request input."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"

    def __init__(self, message: str | None = None, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class UniqueConstraintViolation(PlayerHubError):
    status_code = status.HTTP_409_CONFLICT
    message = "Resource already exists"


class NotFound(PlayerHubError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class StoreUnavailable(PlayerHubError):
    """The relational store could not be reached or failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Database error. Please try again later."


class SessionStoreError(PlayerHubError):
    """The session store failed to persist or delete a session."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Session store error"
