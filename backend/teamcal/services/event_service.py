"""Event service: single and recurring events and their lifecycle."""
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, fields, replace
from datetime import date, time
from typing import Iterable, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamcal.config import get_settings
from teamcal.models.event import Event, EventType, HomeAway
from teamcal.models.rsvp import EventRSVP
from teamcal.models.team import Team
from teamcal.services.errors import (
    CalendarError,
    EmptyRecurrenceError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from teamcal.services.notifications import (
    EventAction,
    EventNotice,
    NotificationDispatcher,
    dispatch_safely,
)
from teamcal.services.realtime import ChangeTable, RealtimeHub
from teamcal.services.recurrence import (
    add_months,
    expand,
    format_pattern,
    new_recurrence_group_id,
    parse_weekdays,
)
from teamcal.services.roster import CallerContext

logger = logging.getLogger(__name__)

# Fields whose change is worth telling the team about
NOTIFIABLE_FIELDS = (
    "event_date",
    "start_time",
    "end_time",
    "location_name",
    "location_address",
)

# Fields a partial update may touch; ownership and recurrence are fixed
UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "event_type",
    "event_date",
    "start_time",
    "end_time",
    "arrival_time",
    "is_all_day",
    "location_name",
    "location_address",
    "opponent",
    "home_away",
    "uniform",
    "notes",
})

_TEXT_FIELDS = (
    "title",
    "description",
    "location_name",
    "location_address",
    "opponent",
    "uniform",
    "notes",
)


@dataclass
class EventDraft:
    """Non-ownership fields of a new event (the date is optional for series)."""
    title: str = ""
    event_type: str = EventType.PRACTICE.value
    event_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    arrival_time: Optional[time] = None
    is_all_day: bool = False
    description: Optional[str] = None
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    opponent: Optional[str] = None
    home_away: Optional[str] = None
    uniform: Optional[str] = None
    notes: Optional[str] = None
    organization_id: Optional[uuid.UUID] = None

    def as_columns(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _clean_text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _coerce_event_type(value) -> EventType:
    try:
        return EventType(value)
    except ValueError:
        raise ValidationError(f"Unknown event type: {value}", field="event_type") from None


def normalize_event_fields(values: dict) -> dict:
    """
    Apply the event field rules to a full set of column values.

    - blank text becomes None
    - all-day events carry no start/end time
    - games and scrimmages use the opponent as title when none is given
    - a title (or opponent for games/scrimmages) is required
    """
    values = dict(values)
    for name in _TEXT_FIELDS:
        if name in values:
            values[name] = _clean_text(values[name])

    event_type = _coerce_event_type(values.get("event_type") or EventType.PRACTICE.value)
    values["event_type"] = event_type.value

    if values.get("home_away") is not None:
        try:
            values["home_away"] = HomeAway(values["home_away"]).value
        except ValueError:
            raise ValidationError(
                f"Unknown venue designation: {values['home_away']}", field="home_away"
            ) from None

    if values.get("is_all_day"):
        values["start_time"] = None
        values["end_time"] = None
    values["is_all_day"] = bool(values.get("is_all_day"))

    if event_type.has_opponent:
        if not values.get("title") and values.get("opponent"):
            values["title"] = values["opponent"]
        if not values.get("title"):
            raise ValidationError("Opponent is required", field="opponent")
    elif not values.get("title"):
        raise ValidationError("Title is required", field="title")

    return values


class EventService:
    """Service for creating, editing, cancelling and deleting events."""

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: Optional[NotificationDispatcher] = None,
        hub: Optional[RealtimeHub] = None,
    ):
        """Initialize event service."""
        self.session = session
        self.dispatcher = dispatcher
        self.hub = hub
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

    def _publish(self, team_id: uuid.UUID, table: ChangeTable = ChangeTable.EVENTS) -> None:
        if self.hub is not None:
            self.hub.publish(team_id, table)

    async def _notify(self, event_id: uuid.UUID, action: EventAction, changed_fields=None) -> None:
        await dispatch_safely(
            self.dispatcher,
            EventNotice(event_id=event_id, action=action, changed_fields=list(changed_fields or [])),
        )

    # ============== Reads ==============

    async def get_event(self, event_id: uuid.UUID) -> Optional[Event]:
        """Get an event by ID."""
        async with self._command("get_event"):
            result = await self.session.execute(
                select(Event).where(Event.id == event_id)
            )
            return result.scalar_one_or_none()

    async def require_event(self, event_id: uuid.UUID) -> Event:
        """Get an event by ID or raise NotFoundError."""
        event = await self.get_event(event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    async def list_group(self, recurrence_group_id: uuid.UUID) -> List[Event]:
        """All events of one recurring series, earliest first."""
        async with self._command("list_group"):
            result = await self.session.execute(
                select(Event)
                .where(Event.recurrence_group_id == recurrence_group_id)
                .order_by(Event.event_date.asc())
            )
            return list(result.scalars().all())

    async def _get_team(self, team_id: uuid.UUID) -> Team:
        result = await self.session.execute(select(Team).where(Team.id == team_id))
        team = result.scalar_one_or_none()
        if team is None:
            raise NotFoundError("Team", team_id)
        return team

    # ============== Creation ==============

    async def create_single(
        self,
        caller: CallerContext,
        team_id: uuid.UUID,
        draft: EventDraft,
    ) -> Event:
        """
        Create one event for a team.

        Raises:
            ValidationError: missing title/opponent or date
            NotFoundError: unknown team
            StorageError: database failure
        """
        if draft.event_date is None:
            raise ValidationError("Event date is required", field="event_date")
        values = normalize_event_fields(draft.as_columns())

        async with self._command("create_single"):
            team = await self._get_team(team_id)
            if values.get("organization_id") is None:
                values["organization_id"] = team.organization_id

            event = Event(team_id=team_id, created_by=caller.user_id, **values)
            self.session.add(event)
            await self.session.commit()
            await self.session.refresh(event)

        logger.info(f"Created event {event.id} '{event.title}' on {event.event_date} for team {team_id}")
        self._publish(team_id)
        await self._notify(event.id, EventAction.CREATED)
        return event

    async def create_recurring(
        self,
        caller: CallerContext,
        team_id: uuid.UUID,
        draft: EventDraft,
        start_date: date,
        end_date: date,
        weekdays: Iterable[str],
    ) -> List[Event]:
        """
        Create one event per matching date in [start_date, end_date].

        All rows share the draft's non-date fields and one new
        recurrence_group_id. A failed insert leaves no rows behind: the
        batch is rolled back and any rows carrying the group id are
        removed before StorageError is raised.

        Raises:
            ValidationError: bad weekdays, range too long, missing title
            EmptyRecurrenceError: no date in the range matches
            StorageError: database failure
        """
        try:
            selected = parse_weekdays(weekdays)
        except ValueError as e:
            raise ValidationError(str(e), field="weekdays") from None
        if not selected:
            raise ValidationError("Select at least one day of the week", field="weekdays")

        max_end = add_months(start_date, self.settings.RECURRENCE_MAX_MONTHS)
        if end_date > max_end:
            raise ValidationError(
                f"Recurring events can repeat for at most {self.settings.RECURRENCE_MAX_MONTHS} "
                f"months (until {max_end.isoformat()})",
                field="end_date",
            )

        dates = expand(start_date, end_date, selected)
        if not dates:
            raise EmptyRecurrenceError()

        values = normalize_event_fields(replace(draft, event_date=dates[0]).as_columns())
        values.pop("event_date")
        group_id = new_recurrence_group_id()
        pattern = format_pattern(selected)

        async with self._command("create_recurring"):
            team = await self._get_team(team_id)
            if values.get("organization_id") is None:
                values["organization_id"] = team.organization_id

        events = [
            Event(
                team_id=team_id,
                created_by=caller.user_id,
                event_date=day,
                recurrence_group_id=group_id,
                recurrence_pattern=pattern,
                **values,
            )
            for day in dates
        ]

        try:
            self.session.add_all(events)
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error(f"create_recurring failed for group {group_id}: {e}")
            await self.session.rollback()
            await self._remove_partial_group(group_id)
            raise StorageError(str(e)) from e

        logger.info(
            f"Created {len(events)} recurring events ({pattern}) for team {team_id}, "
            f"group {group_id}, {dates[0]} to {dates[-1]}"
        )
        self._publish(team_id)
        await self._notify(events[0].id, EventAction.CREATED)
        return events

    async def _remove_partial_group(self, group_id: uuid.UUID) -> None:
        """Best-effort cleanup of rows that reached storage before a failure."""
        try:
            await self.session.execute(
                delete(Event).where(Event.recurrence_group_id == group_id)
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Cleanup of partial recurring group {group_id} failed, "
                f"rows may need manual removal: {e}"
            )

    # ============== Editing ==============

    async def update(self, event_id: uuid.UUID, patch: dict) -> Event:
        """
        Partially update a single event instance.

        Siblings in the same recurrence group are never touched. A notice is
        sent only when the date, time range or location changed.

        Raises:
            ValidationError: unknown field or invalid result
            NotFoundError: event does not exist
            StorageError: database failure
        """
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Fields cannot be updated: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )

        event = await self.require_event(event_id)

        current = {name: getattr(event, name) for name in UPDATABLE_FIELDS}
        merged = normalize_event_fields({**current, **patch})
        if merged.get("event_date") is None:
            raise ValidationError("Event date is required", field="event_date")

        changed_fields = [
            name for name in NOTIFIABLE_FIELDS
            if current.get(name) != merged.get(name)
        ]

        async with self._command("update"):
            for name in UPDATABLE_FIELDS:
                if current.get(name) != merged.get(name):
                    setattr(event, name, merged.get(name))
            await self.session.commit()
            await self.session.refresh(event)

        logger.info(f"Updated event {event_id} (notifiable changes: {changed_fields or 'none'})")
        self._publish(event.team_id)
        if changed_fields:
            await self._notify(event.id, EventAction.UPDATED, changed_fields)
        return event

    # ============== Cancellation ==============

    async def cancel(
        self,
        event_id: uuid.UUID,
        reason: Optional[str] = None,
        notify: bool = True,
    ) -> Event:
        """
        Mark an event cancelled. RSVPs are left as they are.

        Re-cancelling overwrites the reason; the notice is sent every time
        unless notify is False, so callers should check the current state
        first.
        """
        event = await self.require_event(event_id)

        async with self._command("cancel"):
            event.is_cancelled = True
            event.cancelled_reason = _clean_text(reason)
            await self.session.commit()
            await self.session.refresh(event)

        logger.info(f"Cancelled event {event_id} (reason: {event.cancelled_reason!r})")
        self._publish(event.team_id)
        if notify:
            await self._notify(event.id, EventAction.CANCELLED)
        return event

    async def restore(self, event_id: uuid.UUID) -> Event:
        """Clear the cancellation flag and reason."""
        event = await self.require_event(event_id)

        async with self._command("restore"):
            event.is_cancelled = False
            event.cancelled_reason = None
            await self.session.commit()
            await self.session.refresh(event)

        logger.info(f"Restored event {event_id}")
        self._publish(event.team_id)
        await self._notify(event.id, EventAction.UNCANCELLED)
        return event

    # ============== Deletion ==============

    async def delete_single(self, event_id: uuid.UUID) -> None:
        """Delete one event and its RSVPs."""
        event = await self.require_event(event_id)
        team_id = event.team_id

        async with self._command("delete_single"):
            await self.session.execute(
                delete(EventRSVP).where(EventRSVP.event_id == event_id)
            )
            await self.session.execute(delete(Event).where(Event.id == event_id))
            await self.session.commit()

        logger.info(f"Deleted event {event_id}")
        self._publish(team_id)

    async def delete_group_from_date(
        self,
        recurrence_group_id: uuid.UUID,
        from_date: date,
    ) -> int:
        """
        Delete every event of a series dated on or after `from_date`.

        Earlier instances and their RSVPs are kept.

        Returns:
            Number of events deleted

        Raises:
            NotFoundError: no instance of the group on or after from_date
        """
        async with self._command("delete_group_from_date"):
            result = await self.session.execute(
                select(Event.id, Event.team_id).where(
                    Event.recurrence_group_id == recurrence_group_id,
                    Event.event_date >= from_date,
                )
            )
            rows = result.all()
            if not rows:
                raise NotFoundError("Recurrence group", recurrence_group_id)

            event_ids = [row.id for row in rows]
            await self.session.execute(
                delete(EventRSVP).where(EventRSVP.event_id.in_(event_ids))
            )
            await self.session.execute(delete(Event).where(Event.id.in_(event_ids)))
            await self.session.commit()

        logger.info(
            f"Deleted {len(event_ids)} events of group {recurrence_group_id} from {from_date}"
        )
        for team_id in {row.team_id for row in rows}:
            self._publish(team_id)
        return len(event_ids)
