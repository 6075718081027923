"""Cancel / restore transitions and delete-scope resolution."""
import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from teamcal.models.event import Event
from teamcal.services.event_service import EventService

logger = logging.getLogger(__name__)


class EventState(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"

    @classmethod
    def of(cls, event: Event) -> "EventState":
        return cls.CANCELLED if event.is_cancelled else cls.ACTIVE


class DeleteScope(str, enum.Enum):
    """How much of a recurring series a delete removes."""
    SINGLE = "single"
    FUTURE = "future"  # this instance and every later one in the group


@dataclass
class DeleteResult:
    event_id: uuid.UUID
    scope: DeleteScope
    deleted_count: int


class CancellationController:
    """
    Active <-> Cancelled state machine on top of EventService.

    Transitions into the state an event is already in do not produce a
    second notice: re-cancelling only rewrites the reason quietly and
    restoring an active event is a no-op.
    """

    def __init__(self, events: EventService):
        self.events = events

    async def cancel(self, event_id: uuid.UUID, reason: Optional[str] = None) -> Event:
        event = await self.events.require_event(event_id)
        if EventState.of(event) == EventState.CANCELLED:
            return await self._rewrite_reason(event, reason)
        return await self.events.cancel(event_id, reason)

    async def restore(self, event_id: uuid.UUID) -> Event:
        event = await self.events.require_event(event_id)
        if EventState.of(event) == EventState.ACTIVE:
            logger.info(f"Event {event_id} is not cancelled, nothing to restore")
            return event
        return await self.events.restore(event_id)

    async def _rewrite_reason(self, event: Event, reason: Optional[str]) -> Event:
        reason = (reason or "").strip() or None
        if reason == event.cancelled_reason:
            return event
        return await self.events.cancel(event.id, reason, notify=False)

    async def delete(self, event_id: uuid.UUID, scope: DeleteScope = DeleteScope.SINGLE) -> DeleteResult:
        """
        Delete one instance, or this and all later instances of its series.

        A FUTURE delete on an event without a recurrence group degrades to
        a single delete.
        """
        scope = DeleteScope(scope)
        event = await self.events.require_event(event_id)

        if scope == DeleteScope.FUTURE and event.recurrence_group_id is not None:
            count = await self.events.delete_group_from_date(
                event.recurrence_group_id, event.event_date
            )
            return DeleteResult(event_id=event_id, scope=scope, deleted_count=count)

        await self.events.delete_single(event_id)
        return DeleteResult(event_id=event_id, scope=DeleteScope.SINGLE, deleted_count=1)
