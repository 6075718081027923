"""
Calendar subscription feed.

Each user gets an opaque token; external calendar apps poll
/api/calendar-sync/feed.ics?token=... and receive the user's events as
an iCalendar document.
"""
import logging
import secrets
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import List, Optional

from icalendar import Calendar as ICalCalendar, Event as ICalEvent
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamcal.config import get_settings
from teamcal.models.base import utc_now
from teamcal.models.calendar_sync import CalendarSyncToken
from teamcal.models.event import EventType
from teamcal.services.errors import CalendarError, StorageError
from teamcal.services.roster import CallerContext, RosterProvider
from teamcal.services.team_aggregator import ALL_TEAMS, EventView, TeamAggregator

logger = logging.getLogger(__name__)


def _new_token() -> str:
    return secrets.token_urlsafe(32)


class CalendarFeedService:
    """Service for sync tokens and ICS rendering."""

    def __init__(self, session: AsyncSession, roster: RosterProvider):
        self.session = session
        self.roster = roster
        self.settings = get_settings()

    # ============== Tokens ==============

    @asynccontextmanager
    async def _command(self, action: str):
        """Roll back and convert persistence failures into StorageError."""
        try:
            yield
        except CalendarError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"{action} failed: {e}")
            await self.session.rollback()
            raise StorageError(str(e)) from e

    async def _active_token(self, user_id: uuid.UUID) -> Optional[CalendarSyncToken]:
        result = await self.session.execute(
            select(CalendarSyncToken)
            .where(
                CalendarSyncToken.user_id == user_id,
                CalendarSyncToken.is_active == True,
            )
            .order_by(CalendarSyncToken.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_or_create_token(self, user_id: uuid.UUID) -> CalendarSyncToken:
        """Return the user's active token, creating one on first use."""
        async with self._command("get_or_create_token"):
            token = await self._active_token(user_id)
            if token:
                return token

            token = CalendarSyncToken(user_id=user_id, token=_new_token(), is_active=True)
            self.session.add(token)
            await self.session.commit()
            await self.session.refresh(token)
        logger.info(f"Created calendar sync token for user {user_id}")
        return token

    async def regenerate_token(self, user_id: uuid.UUID) -> CalendarSyncToken:
        """Invalidate every existing token of the user and issue a new one."""
        async with self._command("regenerate_token"):
            await self.session.execute(
                update(CalendarSyncToken)
                .where(CalendarSyncToken.user_id == user_id)
                .values(is_active=False)
            )
            token = CalendarSyncToken(user_id=user_id, token=_new_token(), is_active=True)
            self.session.add(token)
            await self.session.commit()
            await self.session.refresh(token)
        logger.info(f"Regenerated calendar sync token for user {user_id}")
        return token

    async def resolve_token(self, token: str) -> Optional[uuid.UUID]:
        """User id for an active token, or None."""
        async with self._command("resolve_token"):
            result = await self.session.execute(
                select(CalendarSyncToken.user_id).where(
                    CalendarSyncToken.token == token,
                    CalendarSyncToken.is_active == True,
                )
            )
            return result.scalar_one_or_none()

    # ============== Feed ==============

    async def render_feed(self, user_id: uuid.UUID, team_id: Optional[uuid.UUID] = None) -> bytes:
        """iCalendar document with the user's events for one team or all teams."""
        aggregator = TeamAggregator(self.session, self.roster)
        views = await aggregator.events_in_range(
            CallerContext(user_id=user_id),
            team_id or ALL_TEAMS,
        )
        return build_calendar(views, self.settings.ICS_CALENDAR_NAME, self.settings.ICS_PRODID)


def build_calendar(views: List[EventView], name: str, prodid: str) -> bytes:
    vcal = ICalCalendar()
    vcal.add('prodid', prodid)
    vcal.add('version', '2.0')
    vcal.add('calscale', 'GREGORIAN')
    vcal.add('x-wr-calname', name)

    stamp = utc_now()
    for view in views:
        vcal.add_component(_to_ical_event(view, stamp))

    return vcal.to_ical()


def _to_ical_event(view: EventView, stamp: datetime) -> ICalEvent:
    event = view.event
    ical = ICalEvent()
    ical.add('uid', f"{event.id}@teamcal")
    ical.add('dtstamp', stamp)

    summary = event.title
    if EventType(event.event_type).has_opponent and event.opponent and event.home_away == "away":
        summary = f"@ {event.opponent}"
    elif EventType(event.event_type).has_opponent and event.opponent:
        summary = f"vs {event.opponent}"
    ical.add('summary', f"[{view.team_name}] {summary}")

    if event.is_all_day or event.start_time is None:
        # DATE values, exclusive end
        ical.add('dtstart', event.event_date)
        ical.add('dtend', event.event_date + timedelta(days=1))
    else:
        # Floating local times; no time zone is attached to calendar dates
        ical.add('dtstart', datetime.combine(event.event_date, event.start_time))
        if event.end_time:
            ical.add('dtend', datetime.combine(event.event_date, event.end_time))

    location = ", ".join(part for part in (event.location_name, event.location_address) if part)
    if location:
        ical.add('location', location)

    details = []
    if event.arrival_time:
        details.append(f"Arrive by {event.arrival_time.strftime('%H:%M')}")
    if event.uniform:
        details.append(f"Uniform: {event.uniform}")
    if event.description:
        details.append(event.description)
    if event.notes:
        details.append(event.notes)
    if event.is_cancelled and event.cancelled_reason:
        details.append(f"Cancelled: {event.cancelled_reason}")
    if details:
        ical.add('description', "\n".join(details))

    ical.add('categories', [event.event_type])
    ical.add('status', 'CANCELLED' if event.is_cancelled else 'CONFIRMED')
    return ical
