"""Standard HTTP exceptions for common cases."""
from typing import Optional
from fastapi import HTTPException, status

from teamcal.services.errors import (
    AccessDeniedError,
    CalendarError,
    NotFoundError,
    StorageError,
    ValidationError,
)


def not_found(resource: str = "Resource", resource_id: Optional[object] = None) -> HTTPException:
    """
    Return 404 Not Found exception.

    Examples:
        raise not_found("Event", event_id)  # "Event with ID ... not found"
        raise not_found("Team")              # "Team not found"
    """
    detail = f"{resource} not found"
    if resource_id:
        detail = f"{resource} with ID {resource_id} not found"
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail
    )


def forbidden(message: str = "Not authorized to perform this action") -> HTTPException:
    """Return 403 Forbidden exception."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=message
    )


def bad_request(message: str) -> HTTPException:
    """
    Return 400 Bad Request exception.

    Examples:
        raise bad_request("Title is required")
    """
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=message
    )


def unauthorized(message: str = "Missing or invalid user identity") -> HTTPException:
    """Return 401 Unauthorized exception."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message
    )


def service_unavailable(message: str = "Calendar storage is unavailable, please try again") -> HTTPException:
    """Return 503 Service Unavailable exception."""
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=message
    )


def server_error(message: str = "Internal server error") -> HTTPException:
    """Return 500 Internal Server Error exception."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message
    )


def http_error(exc: CalendarError) -> HTTPException:
    """
    Map a calendar failure onto the HTTP exception for it.

    ValidationError -> 400, NotFoundError -> 404, AccessDeniedError -> 403,
    StorageError -> 503 with a retry prompt (the database text is only
    logged); anything else is a 500.
    """
    if isinstance(exc, ValidationError):
        return bad_request(exc.message)
    if isinstance(exc, NotFoundError):
        return not_found(exc.resource, exc.resource_id)
    if isinstance(exc, AccessDeniedError):
        return forbidden(str(exc) or "Not a member of this team")
    if isinstance(exc, StorageError):
        return service_unavailable()
    return server_error(str(exc))
