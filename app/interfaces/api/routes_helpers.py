"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from app.domain.exceptions import (
    AuthenticationError,
    NotAuthorized,
    PersistenceError,
    RealtimeError,
    ValidationError,
)

# Keeps page offsets inside the range of an INTEGER column.
MAX_PAGE = 1_000_000

_STATUS_BY_ERROR: dict[type[RealtimeError], int] = {
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    # Non-participants see the same answer as for a missing conversation.
    NotAuthorized: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    PersistenceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(exc: RealtimeError) -> HTTPException:
    """Return the HTTP error matching a domain error kind."""

    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)
