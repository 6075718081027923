"""Typed failures raised by the calendar commands."""
from typing import Optional


class CalendarError(Exception):
    """Base class for every failure a calendar command can report."""


class ValidationError(CalendarError):
    """Input rejected before any storage write."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class EmptyRecurrenceError(ValidationError):
    """A recurring request expanded to zero dates."""

    def __init__(self, message: str = "No events fall within the selected date range and days."):
        super().__init__(message, field="weekdays")


class NotFoundError(CalendarError):
    """The event or RSVP no longer exists."""

    def __init__(self, resource: str, resource_id=None):
        detail = f"{resource} not found"
        if resource_id is not None:
            detail = f"{resource} with ID {resource_id} not found"
        super().__init__(detail)
        self.resource = resource
        self.resource_id = resource_id


class StorageError(CalendarError):
    """
    The persistence layer failed.

    The message is the database error text, unchanged. The original
    exception is available as __cause__.
    """


class AccessDeniedError(CalendarError):
    """The caller has no relationship to the team that would allow this."""
