"""RSVP API routes."""
import logging
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query

from teamcal.api.utils.dependencies import get_event_service, get_roster, get_rsvp_service
from teamcal.dependencies import get_current_caller, require_team_member
from teamcal.models.rsvp import RSVPStatus
from teamcal.schemas.event import (
    RSVPCountsResponse,
    RSVPListResponse,
    RSVPRequest,
    RSVPResponse,
)
from teamcal.services.event_service import EventService
from teamcal.services.roster import CallerContext, DatabaseRoster
from teamcal.services.rsvp_service import UNSET, RSVPService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/events", tags=["RSVPs"])


async def _require_event_member(
    event_id: uuid.UUID,
    caller: CallerContext,
    roster: DatabaseRoster,
    events: EventService
) -> None:
    event = await events.require_event(event_id)
    await require_team_member(roster, caller, event.team_id)


@router.put("/{event_id}/rsvp", response_model=RSVPResponse)
async def respond_to_event(
    event_id: uuid.UUID,
    data: RSVPRequest,
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    events: EventService = Depends(get_event_service),
    service: RSVPService = Depends(get_rsvp_service)
):
    """
    Set the caller's RSVP for an event.

    Answering again replaces the previous answer. Cancelled events still
    accept RSVPs.
    """
    await _require_event_member(event_id, caller, roster, events)

    decline_reason = data.decline_reason if "decline_reason" in data.model_fields_set else UNSET
    rsvp = await service.respond(
        event_id,
        caller.user_id,
        data.status,
        decline_reason=decline_reason,
        player_id=data.player_id,
    )
    return RSVPResponse.model_validate(rsvp)


@router.get("/{event_id}/rsvp", response_model=Optional[RSVPResponse])
async def get_my_rsvp(
    event_id: uuid.UUID,
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    events: EventService = Depends(get_event_service),
    service: RSVPService = Depends(get_rsvp_service)
):
    """The caller's RSVP, or null when they have not answered."""
    await _require_event_member(event_id, caller, roster, events)

    rsvp = await service.mine(event_id, caller.user_id)
    return RSVPResponse.model_validate(rsvp) if rsvp else None


@router.get("/{event_id}/rsvps", response_model=RSVPListResponse)
async def list_event_rsvps(
    event_id: uuid.UUID,
    status: Optional[RSVPStatus] = Query(None, description="Filter by status"),
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    events: EventService = Depends(get_event_service),
    service: RSVPService = Depends(get_rsvp_service)
):
    """List every RSVP for an event."""
    await _require_event_member(event_id, caller, roster, events)

    rsvps = await service.list_for_event(event_id, status.value if status else None)
    items = [RSVPResponse.model_validate(rsvp) for rsvp in rsvps]
    return RSVPListResponse(items=items, total=len(items))


@router.get("/{event_id}/rsvps/counts", response_model=RSVPCountsResponse)
async def get_rsvp_counts(
    event_id: uuid.UUID,
    caller: CallerContext = Depends(get_current_caller),
    roster: DatabaseRoster = Depends(get_roster),
    events: EventService = Depends(get_event_service),
    service: RSVPService = Depends(get_rsvp_service)
):
    """Number of RSVPs per status."""
    await _require_event_member(event_id, caller, roster, events)

    counts = await service.counts(event_id)
    return RSVPCountsResponse(**counts.to_dict())
