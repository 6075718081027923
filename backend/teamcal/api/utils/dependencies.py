"""Common dependency injection utilities."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from teamcal.database import get_db
from teamcal.services.calendar_feed_service import CalendarFeedService
from teamcal.services.cancellation import CancellationController
from teamcal.services.event_service import EventService
from teamcal.services.notifications import get_notification_dispatcher
from teamcal.services.realtime import get_realtime_hub
from teamcal.services.roster import DatabaseRoster
from teamcal.services.rsvp_service import RSVPService
from teamcal.services.team_aggregator import TeamAggregator


async def get_roster(
    db: AsyncSession = Depends(get_db)
) -> DatabaseRoster:
    """Get the database-backed roster."""
    return DatabaseRoster(db)


async def get_event_service(
    db: AsyncSession = Depends(get_db)
) -> EventService:
    """
    Get EventService instance.

    Args:
        db: Database session from dependency injection

    Returns:
        EventService wired to the configured notification dispatcher and
        the process-wide realtime hub
    """
    return EventService(db, get_notification_dispatcher(), get_realtime_hub())


async def get_rsvp_service(
    db: AsyncSession = Depends(get_db)
) -> RSVPService:
    """Get RSVPService instance."""
    return RSVPService(db, get_realtime_hub())


async def get_cancellation_controller(
    events: EventService = Depends(get_event_service)
) -> CancellationController:
    """Get CancellationController instance."""
    return CancellationController(events)


async def get_team_aggregator(
    db: AsyncSession = Depends(get_db),
    roster: DatabaseRoster = Depends(get_roster)
) -> TeamAggregator:
    """Get TeamAggregator instance."""
    return TeamAggregator(db, roster)


async def get_calendar_feed_service(
    db: AsyncSession = Depends(get_db),
    roster: DatabaseRoster = Depends(get_roster)
) -> CalendarFeedService:
    """Get CalendarFeedService instance."""
    return CalendarFeedService(db, roster)
