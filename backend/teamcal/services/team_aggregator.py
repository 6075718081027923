"""Merged calendar view across one team or every team the caller belongs to."""
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamcal.config import get_settings
from teamcal.models.event import Event
from teamcal.models.rsvp import EventRSVP
from teamcal.services.errors import AccessDeniedError, CalendarError, NotFoundError, StorageError
from teamcal.services.recurrence import add_months
from teamcal.services.roster import CallerContext, RosterProvider, TeamAccess
from teamcal.services.rsvp_service import RSVPCounts, RSVPService

logger = logging.getLogger(__name__)

# Scope value for the virtual "All Teams" calendar
ALL_TEAMS = "all"

TeamScope = Union[uuid.UUID, str]

END_OF_DAY = time(23, 59, 59)


@dataclass
class EventView:
    """An event as shown to one caller."""
    event: Event
    team_name: str
    team_color: str
    rsvp_counts: RSVPCounts
    my_rsvp: Optional[EventRSVP]
    can_manage: bool
    is_past: bool


def is_event_past(event: Event, now: Optional[datetime] = None) -> bool:
    """
    True once the event is over.

    Timed events end at end_time on their date; events without an end
    time run until the end of the day. Dates are local, so `now` is a
    naive local datetime.
    """
    now = now or datetime.now()
    end = datetime.combine(event.event_date, event.end_time or END_OF_DAY)
    return end < now


def timeline_sort_key(event: Event):
    """Date, then untimed/all-day events, then by start time."""
    untimed = event.is_all_day or event.start_time is None
    return (
        event.event_date,
        0 if untimed else 1,
        time.min if untimed else event.start_time,
    )


def sort_timeline(events: List[Event]) -> List[Event]:
    """Stable sort into calendar order."""
    return sorted(events, key=timeline_sort_key)


class TeamAggregator:
    """Builds the caller's calendar timeline from the roster and stored events."""

    def __init__(self, session: AsyncSession, roster: RosterProvider):
        self.session = session
        self.roster = roster
        self.rsvps = RSVPService(session)
        self.settings = get_settings()

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

    def default_window(self, today: Optional[date] = None) -> tuple:
        today = today or date.today()
        return (
            add_months(today, -self.settings.CALENDAR_PAST_MONTHS),
            add_months(today, self.settings.CALENDAR_FUTURE_MONTHS),
        )

    async def resolve_scope(self, caller: CallerContext, scope: TeamScope) -> List[TeamAccess]:
        """
        Teams covered by a scope.

        Raises:
            AccessDeniedError: a single team the caller does not belong to
            StorageError: roster lookup failed
        """
        async with self._command("resolve_scope"):
            teams = await self.roster.teams_for_user(caller.user_id)
        if scope == ALL_TEAMS:
            return teams

        team_id = scope if isinstance(scope, uuid.UUID) else uuid.UUID(str(scope))
        selected = [team for team in teams if team.id == team_id]
        if not selected:
            raise AccessDeniedError(f"User {caller.user_id} is not a member of team {team_id}")
        return selected

    async def events_in_range(
        self,
        caller: CallerContext,
        scope: TeamScope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> List[EventView]:
        """
        Events of the scoped teams between two dates (inclusive), in
        calendar order, each tagged with its team's name and color.
        """
        teams = await self.resolve_scope(caller, scope)
        if not teams:
            return []

        if start_date is None or end_date is None:
            default_start, default_end = self.default_window()
            start_date = start_date or default_start
            end_date = end_date or default_end

        teams_by_id: Dict[uuid.UUID, TeamAccess] = {team.id: team for team in teams}

        limit = self.settings.CALENDAR_QUERY_LIMIT
        async with self._command("events_in_range"):
            result = await self.session.execute(
                select(Event)
                .where(
                    Event.team_id.in_(list(teams_by_id)),
                    Event.event_date >= start_date,
                    Event.event_date <= end_date,
                )
                .order_by(Event.event_date.asc(), Event.start_time.asc(), Event.id.asc())
                .limit(limit)
            )
            events = list(result.scalars().all())

        if len(events) >= limit:
            logger.warning(
                f"Calendar query for user {caller.user_id} hit the {limit} event limit; "
                f"events after {events[-1].event_date} are not shown"
            )

        rsvps_by_event = await self.rsvps.rsvps_for_events(event.id for event in events)

        manageable = {}
        async with self._command("events_in_range"):
            for team_id in {event.team_id for event in events}:
                manageable[team_id] = await self.roster.is_staff(caller.user_id, team_id)

        views = [
            self._view(
                event,
                teams_by_id[event.team_id],
                rsvps_by_event.get(event.id, []),
                caller,
                manageable[event.team_id],
                now,
            )
            for event in sort_timeline(events)
        ]
        logger.debug(
            f"Aggregated {len(views)} events for user {caller.user_id} "
            f"across {len(teams)} teams ({start_date} to {end_date})"
        )
        return views

    async def event_view(
        self,
        caller: CallerContext,
        event_id: uuid.UUID,
        now: Optional[datetime] = None,
    ) -> EventView:
        """
        Single event with counts and the caller's RSVP.

        Raises:
            NotFoundError: no such event
            AccessDeniedError: caller is not on the event's team
        """
        async with self._command("event_view"):
            result = await self.session.execute(select(Event).where(Event.id == event_id))
            event = result.scalar_one_or_none()
        if event is None:
            raise NotFoundError("Event", event_id)

        teams = await self.resolve_scope(caller, event.team_id)
        rsvps = (await self.rsvps.rsvps_for_events([event.id]))[event.id]
        async with self._command("event_view"):
            can_manage = await self.roster.is_staff(caller.user_id, event.team_id)
        return self._view(event, teams[0], rsvps, caller, can_manage, now)

    @staticmethod
    def _view(
        event: Event,
        team: TeamAccess,
        rsvps: List[EventRSVP],
        caller: CallerContext,
        can_manage: bool,
        now: Optional[datetime],
    ) -> EventView:
        my_rsvp = next((r for r in rsvps if r.user_id == caller.user_id), None)
        return EventView(
            event=event,
            team_name=team.name,
            team_color=team.color,
            rsvp_counts=RSVPCounts.from_statuses(r.status for r in rsvps),
            my_rsvp=my_rsvp,
            can_manage=can_manage,
            is_past=is_event_past(event, now),
        )
