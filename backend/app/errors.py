"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``app.main`` renders them as
``{"error": true, "message": ...}`` with the matching status code.
"""
from fastapi import status


class AppError(Exception):
    """Base class for every error that may reach a client."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "invalid request"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "user not authenticated"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "conflict"


class PersistenceError(AppError):
    """Store unavailable or query failure. The message is always generic."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "database error"


class SerializationFailure(PersistenceError):
    """The store aborted the transaction to keep concurrent writers serializable.

    Raised by ``transaction()``; write services decorated with
    ``retry_on_serialization_failure`` run again from the top.
    """
