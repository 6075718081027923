"""Event API routes: calendar views, creation, editing, cancellation and deletion."""
import json
import logging
import uuid
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import StreamingResponse

from teamcal.api.exceptions import bad_request
from teamcal.api.utils.dependencies import (
    get_cancellation_controller,
    get_event_service,
    get_roster,
    get_team_aggregator,
)
from teamcal.dependencies import get_current_caller, require_team_staff
from teamcal.schemas.event import (
    CancelEventRequest,
    DeleteEventResponse,
    EventCreate,
    EventListResponse,
    EventResponse,
    EventUpdate,
    RecurringEventCreate,
    RecurringEventResponse,
)
from teamcal.services.cancellation import CancellationController, DeleteScope
from teamcal.services.event_service import EventDraft, EventService
from teamcal.services.realtime import get_realtime_hub
from teamcal.services.roster import CallerContext, DatabaseRoster
from teamcal.services.team_aggregator import ALL_TEAMS, TeamAggregator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/events", tags=["Events"])

_SERIES_FIELDS = {"team_id", "start_date", "end_date", "weekdays"}


def _parse_scope(team_id: str):
    if team_id == ALL_TEAMS:
        return ALL_TEAMS
    try:
        return uuid.UUID(team_id)
    except ValueError:
        raise bad_request(f'team_id must be a UUID or "{ALL_TEAMS}"')


def _managed_response(event) -> EventResponse:
    response = EventResponse.model_validate(event)
    response.can_manage = True
    return response


# ============== Calendar Views ==============

@router.get("", response_model=EventListResponse)
async def list_events(
    team_id: str = Query(ALL_TEAMS, description='Team UUID or "all"'),
    start: Optional[date] = Query(None, description="First date (inclusive)"),
    end: Optional[date] = Query(None, description="Last date (inclusive)"),
    caller: CallerContext = Depends(get_current_caller),
    aggregator: TeamAggregator = Depends(get_team_aggregator)
):
    """
    List events for one team or every team of the caller.

    Without a range, the window runs from one month back to six months
    ahead of today.
    """
    views = await aggregator.events_in_range(caller, _parse_scope(team_id), start, end)
    items = [EventResponse.from_view(view) for view in views]
    return EventListResponse(items=items, total=len(items))


@router.get("/changes")
async def stream_changes(
    team_id: str = Query(ALL_TEAMS, description='Team UUID or "all"'),
    caller: CallerContext = Depends(get_current_caller),
    aggregator: TeamAggregator = Depends(get_team_aggregator)
):
    """
    Server-sent stream of change signals for the caller's teams.

    Each message only names the team and table that changed; clients
    re-fetch their view when one arrives.
    """
    teams = await aggregator.resolve_scope(caller, _parse_scope(team_id))
    subscription = get_realtime_hub().subscribe(team.id for team in teams)

    async def event_source():
        async with subscription:
            async for signal in subscription:
                yield f"data: {json.dumps(signal.to_dict())}\n\n"

    return StreamingResponse(event_source(), media_type="text/event-stream")


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: uuid.UUID,
    caller: CallerContext = Depends(get_current_caller),
    aggregator: TeamAggregator = Depends(get_team_aggregator)
):
    """Get one event with RSVP counts and the caller's own RSVP."""
    view = await aggregator.event_view(caller, event_id)
    return EventResponse.from_view(view)


# ============== Event Management (Team Staff) ==============

@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    service: EventService = Depends(get_event_service)
):
    """Create a single event. Team staff only."""
    await require_team_staff(roster, caller, data.team_id)

    draft = EventDraft(**data.model_dump(exclude={"team_id"}))
    event = await service.create_single(caller, data.team_id, draft)
    return _managed_response(event)


@router.post("/recurring", response_model=RecurringEventResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring_events(
    data: RecurringEventCreate,
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    service: EventService = Depends(get_event_service)
):
    """Create a weekly series of events. Team staff only."""
    await require_team_staff(roster, caller, data.team_id)

    draft = EventDraft(**data.model_dump(exclude=_SERIES_FIELDS))
    events = await service.create_recurring(
        caller,
        data.team_id,
        draft,
        start_date=data.start_date,
        end_date=data.end_date,
        weekdays=data.weekdays,
    )
    items = [_managed_response(event) for event in events]
    return RecurringEventResponse(
        recurrence_group_id=events[0].recurrence_group_id,
        recurrence_pattern=events[0].recurrence_pattern,
        items=items,
        total=len(items),
    )


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: uuid.UUID,
    data: EventUpdate,
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    service: EventService = Depends(get_event_service)
):
    """Edit one event instance. Other events of its series are untouched."""
    event = await service.require_event(event_id)
    await require_team_staff(roster, caller, event.team_id)

    event = await service.update(event_id, data.model_dump(exclude_unset=True))
    return _managed_response(event)


@router.post("/{event_id}/cancel", response_model=EventResponse)
async def cancel_event(
    event_id: uuid.UUID,
    data: CancelEventRequest,
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    controller: CancellationController = Depends(get_cancellation_controller)
):
    """Cancel an event. RSVPs are kept so a restore brings them back."""
    event = await controller.events.require_event(event_id)
    await require_team_staff(roster, caller, event.team_id)

    event = await controller.cancel(event_id, data.reason)
    return _managed_response(event)


@router.post("/{event_id}/restore", response_model=EventResponse)
async def restore_event(
    event_id: uuid.UUID,
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    controller: CancellationController = Depends(get_cancellation_controller)
):
    """Undo a cancellation."""
    event = await controller.events.require_event(event_id)
    await require_team_staff(roster, caller, event.team_id)

    event = await controller.restore(event_id)
    return _managed_response(event)


@router.delete("/{event_id}", response_model=DeleteEventResponse)
async def delete_event(
    event_id: uuid.UUID,
    scope: DeleteScope = Query(DeleteScope.SINGLE, description='"single" or "future"'),
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    controller: CancellationController = Depends(get_cancellation_controller)
):
    """
    Delete an event.

    With scope=future, this event and every later event of its recurring
    series are deleted; earlier ones stay.
    """
    event = await controller.events.require_event(event_id)
    await require_team_staff(roster, caller, event.team_id)

    result = await controller.delete(event_id, scope)
    logger.info(
        f"User {caller.user_id} deleted {result.deleted_count} event(s) "
        f"starting at {event_id} (scope={result.scope.value})"
    )
    return DeleteEventResponse(
        event_id=result.event_id,
        scope=result.scope.value,
        deleted_count=result.deleted_count,
    )
