"""Error taxonomy shared by the services.

Services raise these; the application maps each class to its HTTP status in
one exception handler, so routers never translate them by hand.
"""
from fastapi import status


class BookingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Bad or missing input. No side effect has happened."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(BookingError):
    """Bad credentials, an invalid token, or a deactivated account."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(BookingError):
    """The actor's role is not allowed to perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BookingError):
    """A unique field (user email) is already taken."""

    status_code = status.HTTP_409_CONFLICT


class InternalInvariantError(NotFoundError):
    """A reload right after a write came back empty: the store is inconsistent."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
