"""SQLAlchemy models."""
from teamcal.models.team import Team, TeamMembership, AccessType
from teamcal.models.event import Event, EventType, HomeAway
from teamcal.models.rsvp import EventRSVP, RSVPStatus
from teamcal.models.calendar_sync import CalendarSyncToken

__all__ = [
    "Team",
    "TeamMembership",
    "AccessType",
    "Event",
    "EventType",
    "HomeAway",
    "EventRSVP",
    "RSVPStatus",
    "CalendarSyncToken",
]
