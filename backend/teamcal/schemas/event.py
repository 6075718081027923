"""Pydantic schemas for events, recurring series and RSVPs."""
from datetime import datetime, date, time
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field

from teamcal.models.event import EventType, HomeAway
from teamcal.models.rsvp import RSVPStatus


class EventFields(BaseModel):
    """Fields shared by single and recurring event creation."""
    title: str = Field("", max_length=255, description="Optional for games/scrimmages (opponent is used)")
    event_type: EventType = EventType.PRACTICE
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    arrival_time: Optional[time] = None
    is_all_day: bool = False
    description: Optional[str] = None
    location_name: Optional[str] = Field(None, max_length=255)
    location_address: Optional[str] = Field(None, max_length=500)
    opponent: Optional[str] = Field(None, max_length=255)
    home_away: Optional[HomeAway] = None
    uniform: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    organization_id: Optional[UUID] = None


class EventCreate(EventFields):
    """Schema for creating a single event."""
    team_id: UUID
    event_date: date


class RecurringEventCreate(EventFields):
    """Schema for creating a weekly recurring series."""
    team_id: UUID
    start_date: date
    end_date: date
    weekdays: List[str] = Field(..., description='Weekday codes: "Su", "M", "Tu", "W", "Th", "F", "Sa"')


class EventUpdate(BaseModel):
    """Schema for a partial update of one event instance."""
    title: Optional[str] = Field(None, max_length=255)
    event_type: Optional[EventType] = None
    event_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    arrival_time: Optional[time] = None
    is_all_day: Optional[bool] = None
    description: Optional[str] = None
    location_name: Optional[str] = Field(None, max_length=255)
    location_address: Optional[str] = Field(None, max_length=500)
    opponent: Optional[str] = Field(None, max_length=255)
    home_away: Optional[HomeAway] = None
    uniform: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class CancelEventRequest(BaseModel):
    """Request to cancel an event."""
    reason: Optional[str] = Field(None, max_length=500)


class RSVPCountsResponse(BaseModel):
    yes: int = 0
    no: int = 0
    maybe: int = 0
    pending: int = 0


class RSVPRequest(BaseModel):
    """
    Request to answer an event.

    Leave decline_reason out to keep any stored reason; send "" when the
    user skipped the reason prompt.
    """
    status: RSVPStatus
    decline_reason: Optional[str] = Field(None, max_length=500)
    player_id: Optional[UUID] = None


class RSVPResponse(BaseModel):
    """RSVP response schema."""
    id: UUID
    event_id: UUID
    user_id: UUID
    player_id: Optional[UUID] = None
    status: str
    decline_reason: Optional[str] = None
    responded_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class RSVPListResponse(BaseModel):
    items: List[RSVPResponse]
    total: int


class EventResponse(BaseModel):
    """Event response schema."""
    id: UUID
    team_id: UUID
    organization_id: Optional[UUID] = None
    created_by: UUID
    title: str
    description: Optional[str] = None
    event_type: str
    event_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    arrival_time: Optional[time] = None
    is_all_day: bool = False
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    opponent: Optional[str] = None
    home_away: Optional[str] = None
    uniform: Optional[str] = None
    notes: Optional[str] = None
    is_cancelled: bool = False
    cancelled_reason: Optional[str] = None
    recurrence_group_id: Optional[UUID] = None
    recurrence_pattern: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Caller-specific view data (populated when needed)
    team_name: Optional[str] = None
    team_color: Optional[str] = None
    rsvp_counts: Optional[RSVPCountsResponse] = None
    my_rsvp: Optional[RSVPResponse] = None
    can_manage: Optional[bool] = None
    is_past: Optional[bool] = None

    model_config = {
        "from_attributes": True
    }

    @classmethod
    def from_view(cls, view) -> "EventResponse":
        """Build from a team_aggregator.EventView."""
        response = cls.model_validate(view.event)
        response.team_name = view.team_name
        response.team_color = view.team_color
        response.rsvp_counts = RSVPCountsResponse(**view.rsvp_counts.to_dict())
        response.my_rsvp = RSVPResponse.model_validate(view.my_rsvp) if view.my_rsvp else None
        response.can_manage = view.can_manage
        response.is_past = view.is_past
        return response


class EventListResponse(BaseModel):
    """Response for event list."""
    items: List[EventResponse]
    total: int


class RecurringEventResponse(BaseModel):
    """Response for a created recurring series."""
    recurrence_group_id: UUID
    recurrence_pattern: str
    items: List[EventResponse]
    total: int


class DeleteEventResponse(BaseModel):
    event_id: UUID
    scope: str
    deleted_count: int
