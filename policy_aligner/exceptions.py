from __future__ import annotations

from fastapi import HTTPException, status


class PolicyAlignerError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(PolicyAlignerError):
    """Raised when a request carries a missing or invalid value."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(PolicyAlignerError):
    """Raised when a referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(PolicyAlignerError):
    """Raised when a write would duplicate an existing record."""

    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(PolicyAlignerError):
    """Raised when the caller may not perform the requested change."""

    status_code = status.HTTP_403_FORBIDDEN


def to_http_exception(exc: PolicyAlignerError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)
