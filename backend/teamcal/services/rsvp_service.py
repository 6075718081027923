"""RSVP service: per-user attendance responses and their counts."""
import logging
import uuid
from collections import Counter
from contextlib import asynccontextmanager
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamcal.models.base import utc_now
from teamcal.models.event import Event
from teamcal.models.rsvp import EventRSVP, RSVPStatus
from teamcal.services.errors import CalendarError, NotFoundError, StorageError, ValidationError
from teamcal.services.realtime import ChangeTable, RealtimeHub

logger = logging.getLogger(__name__)


class _Unset:
    """Marker for "decline reason not supplied" (as opposed to an empty one)."""

    def __repr__(self):
        return "UNSET"


UNSET = _Unset()


@dataclass
class RSVPCounts:
    """Number of RSVPs per status for one event."""
    yes: int = 0
    no: int = 0
    maybe: int = 0
    pending: int = 0

    @property
    def total(self) -> int:
        return self.yes + self.no + self.maybe + self.pending

    @classmethod
    def from_statuses(cls, statuses: Iterable[str]) -> "RSVPCounts":
        counter = Counter(statuses)
        return cls(
            yes=counter.get(RSVPStatus.YES.value, 0),
            no=counter.get(RSVPStatus.NO.value, 0),
            maybe=counter.get(RSVPStatus.MAYBE.value, 0),
            pending=counter.get(RSVPStatus.PENDING.value, 0),
        )

    def to_dict(self) -> dict:
        return asdict(self)


class RSVPService:
    """Service for recording and summarising RSVPs."""

    def __init__(self, session: AsyncSession, hub: Optional[RealtimeHub] = None):
        """Initialize RSVP service."""
        self.session = session
        self.hub = hub

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

    async def respond(
        self,
        event_id: uuid.UUID,
        user_id: uuid.UUID,
        status: str,
        decline_reason=UNSET,
        player_id: Optional[uuid.UUID] = None,
    ) -> EventRSVP:
        """
        Record a user's answer, updating their existing RSVP if there is one.

        The decline reason is only kept for "no". For "no", an empty string
        means the user skipped the reason, while UNSET means the caller never
        asked: an existing reason is then left alone.

        Raises:
            ValidationError: unknown status, or pending after an answer
            NotFoundError: event does not exist
            StorageError: database failure
        """
        try:
            status = RSVPStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown RSVP status: {status}", field="status") from None

        async with self._command("respond"):
            result = await self.session.execute(
                select(Event.team_id).where(Event.id == event_id)
            )
            team_id = result.scalar_one_or_none()
            if team_id is None:
                raise NotFoundError("Event", event_id)

            rsvp = await self._find(event_id, user_id)
            now = utc_now()

            if rsvp is None:
                rsvp = EventRSVP(
                    event_id=event_id,
                    user_id=user_id,
                    player_id=player_id,
                    status=status.value,
                    decline_reason=None,
                    responded_at=now,
                    updated_at=now,
                )
                if status == RSVPStatus.NO and decline_reason is not UNSET:
                    rsvp.decline_reason = decline_reason
                self.session.add(rsvp)
            else:
                if status == RSVPStatus.PENDING and rsvp.status != RSVPStatus.PENDING.value:
                    raise ValidationError(
                        "An answered RSVP cannot go back to pending", field="status"
                    )
                rsvp.status = status.value
                rsvp.responded_at = now
                rsvp.updated_at = now
                if player_id is not None:
                    rsvp.player_id = player_id
                if status != RSVPStatus.NO:
                    rsvp.decline_reason = None
                elif decline_reason is not UNSET:
                    rsvp.decline_reason = decline_reason

            await self.session.commit()
            await self.session.refresh(rsvp)

        logger.info(f"RSVP {status.value} from user {user_id} for event {event_id}")
        if self.hub is not None:
            self.hub.publish(team_id, ChangeTable.RSVPS)
        return rsvp

    async def _find(self, event_id: uuid.UUID, user_id: uuid.UUID) -> Optional[EventRSVP]:
        result = await self.session.execute(
            select(EventRSVP).where(
                EventRSVP.event_id == event_id,
                EventRSVP.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def mine(self, event_id: uuid.UUID, user_id: uuid.UUID) -> Optional[EventRSVP]:
        """The user's RSVP for the event, or None."""
        async with self._command("mine"):
            return await self._find(event_id, user_id)

    async def list_for_event(
        self,
        event_id: uuid.UUID,
        status: Optional[str] = None,
    ) -> List[EventRSVP]:
        """All RSVPs for an event, optionally filtered by status."""
        query = select(EventRSVP).where(EventRSVP.event_id == event_id)
        if status:
            query = query.where(EventRSVP.status == RSVPStatus(status).value)
        query = query.order_by(EventRSVP.responded_at.asc())

        async with self._command("list_for_event"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def counts(self, event_id: uuid.UUID) -> RSVPCounts:
        """
        Count RSVPs per status by grouping the event's rows.

        An event without RSVPs yields all zeros.
        """
        async with self._command("counts"):
            result = await self.session.execute(
                select(EventRSVP.status, func.count(EventRSVP.id).label('count'))
                .where(EventRSVP.event_id == event_id)
                .group_by(EventRSVP.status)
            )
            status_counts = {row.status: row.count for row in result.all()}

        return RSVPCounts(
            yes=status_counts.get(RSVPStatus.YES.value, 0),
            no=status_counts.get(RSVPStatus.NO.value, 0),
            maybe=status_counts.get(RSVPStatus.MAYBE.value, 0),
            pending=status_counts.get(RSVPStatus.PENDING.value, 0),
        )

    async def rsvps_for_events(self, event_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, List[EventRSVP]]:
        """RSVP rows grouped by event id; every requested id has an entry."""
        event_ids = list(event_ids)
        grouped: Dict[uuid.UUID, List[EventRSVP]] = {event_id: [] for event_id in event_ids}
        if not event_ids:
            return grouped

        async with self._command("rsvps_for_events"):
            result = await self.session.execute(
                select(EventRSVP).where(EventRSVP.event_id.in_(event_ids))
            )
            for rsvp in result.scalars().all():
                grouped.setdefault(rsvp.event_id, []).append(rsvp)
        return grouped

    async def counts_for_events(self, event_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, RSVPCounts]:
        """Counts for many events with one query."""
        grouped = await self.rsvps_for_events(event_ids)
        return {
            event_id: RSVPCounts.from_statuses(r.status for r in rsvps)
            for event_id, rsvps in grouped.items()
        }
