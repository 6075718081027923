"""Calendar subscription routes: sync tokens and the ICS feed."""
import logging
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request, Response

from teamcal.api.exceptions import not_found
from teamcal.api.utils.dependencies import get_calendar_feed_service
from teamcal.dependencies import get_current_caller
from teamcal.schemas.calendar_sync import SyncTokenResponse
from teamcal.services.calendar_feed_service import CalendarFeedService
from teamcal.services.roster import CallerContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/calendar-sync", tags=["Calendar Sync"])


def _token_response(request: Request, token) -> SyncTokenResponse:
    feed_url = request.url_for("calendar_feed").include_query_params(token=token.token)
    return SyncTokenResponse(
        token=token.token,
        feed_url=str(feed_url),
        created_at=token.created_at,
    )


@router.get("/token", response_model=SyncTokenResponse)
async def get_sync_token(
    request: Request,
    caller: CallerContext = Depends(get_current_caller),
    service: CalendarFeedService = Depends(get_calendar_feed_service)
):
    """Get the caller's subscription token, creating it on first use."""
    token = await service.get_or_create_token(caller.user_id)
    return _token_response(request, token)


@router.post("/token/regenerate", response_model=SyncTokenResponse)
async def regenerate_sync_token(
    request: Request,
    caller: CallerContext = Depends(get_current_caller),
    service: CalendarFeedService = Depends(get_calendar_feed_service)
):
    """Replace the caller's token; existing subscriptions stop working."""
    token = await service.regenerate_token(caller.user_id)
    return _token_response(request, token)


@router.get("/feed.ics", name="calendar_feed")
async def calendar_feed(
    token: str = Query(..., description="Subscription token"),
    team_id: Optional[uuid.UUID] = Query(None, description="Limit the feed to one team"),
    service: CalendarFeedService = Depends(get_calendar_feed_service)
):
    """
    iCalendar feed for calendar apps.

    The token stands in for the user identity, so no X-User-Id header is
    needed here.
    """
    user_id = await service.resolve_token(token)
    if user_id is None:
        raise not_found("Calendar feed")

    body = await service.render_feed(user_id, team_id)
    return Response(
        content=body,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": 'inline; filename="teamcal.ics"'},
    )
