"""
Application errors mapped to HTTP responses by the exception handlers in api.main.
"""

from fastapi import status


class APIError(Exception):
    """Base error carrying the HTTP status it is reported with."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(APIError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(APIError):
    """Unique or foreign key constraint violated by the store."""
    status_code = status.HTTP_409_CONFLICT


class InvalidCredentialsError(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED


class UnauthorizedError(APIError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(APIError):
    status_code = status.HTTP_403_FORBIDDEN


class MisconfigurationError(APIError):
    """Reference data the application relies on is missing."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
