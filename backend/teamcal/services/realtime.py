"""
In-process change signals keyed by team.

Commands publish an opaque "something changed" signal after they commit.
Subscribers never receive row data: on a signal they re-run their whole
read query (see LiveCalendar).
"""
import asyncio
import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)

# Pending signals per subscriber; one queued signal already forces a re-fetch
SUBSCRIBER_QUEUE_SIZE = 16


class ChangeTable(str, enum.Enum):
    """Table a change signal refers to."""
    EVENTS = "cal_events"
    RSVPS = "cal_event_rsvps"


@dataclass(frozen=True)
class ChangeSignal:
    team_id: uuid.UUID
    table: ChangeTable

    def to_dict(self) -> dict:
        return {"team_id": str(self.team_id), "table": self.table.value}


class Subscription:
    """Queue of change signals for a set of teams."""

    def __init__(self, hub: "RealtimeHub", team_ids: Iterable[uuid.UUID]):
        self.hub = hub
        self.team_ids = set(team_ids)
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self.closed = False

    async def get(self) -> ChangeSignal:
        return await self.queue.get()

    def drain(self) -> List[ChangeSignal]:
        """Pop every signal that is already queued without waiting."""
        signals = []
        while not self.queue.empty():
            signals.append(self.queue.get_nowait())
        return signals

    def close(self) -> None:
        if not self.closed:
            self.hub._unsubscribe(self)
            self.closed = True

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeSignal:
        if self.closed:
            raise StopAsyncIteration
        return await self.get()


class RealtimeHub:
    """Fan-out of change signals to subscribers of a team."""

    def __init__(self):
        self._subscribers: Dict[uuid.UUID, Set[Subscription]] = {}

    def subscribe(self, team_ids: Iterable[uuid.UUID]) -> Subscription:
        subscription = Subscription(self, team_ids)
        for team_id in subscription.team_ids:
            self._subscribers.setdefault(team_id, set()).add(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        for team_id in subscription.team_ids:
            subscribers = self._subscribers.get(team_id)
            if subscribers is None:
                continue
            subscribers.discard(subscription)
            if not subscribers:
                del self._subscribers[team_id]

    def subscriber_count(self, team_id: uuid.UUID) -> int:
        return len(self._subscribers.get(team_id, ()))

    def publish(self, team_id: uuid.UUID, table: ChangeTable) -> int:
        """
        Signal every subscriber of `team_id`.

        Returns:
            Number of subscribers that received the signal
        """
        signal = ChangeSignal(team_id=team_id, table=table)
        delivered = 0
        for subscription in list(self._subscribers.get(team_id, ())):
            try:
                subscription.queue.put_nowait(signal)
                delivered += 1
            except asyncio.QueueFull:
                # Subscriber already has a backlog, it will re-fetch anyway
                logger.debug(f"Dropping change signal for slow subscriber on team {team_id}")
        return delivered


class LiveCalendar:
    """
    Working set that re-reads itself whenever a subscribed team changes.

    `fetch` must be a read-only coroutine returning the full current view;
    it may run while a command is still in flight.
    """

    def __init__(
        self,
        hub: RealtimeHub,
        team_ids: Iterable[uuid.UUID],
        fetch: Callable[[], Awaitable[list]],
    ):
        self.hub = hub
        self.team_ids = list(team_ids)
        self.fetch = fetch
        self.items: list = []
        self.refresh_count = 0

    async def refresh(self) -> list:
        self.items = await self.fetch()
        self.refresh_count += 1
        return self.items

    async def run(
        self,
        on_update: Optional[Callable[[list], Awaitable[None]]] = None,
        max_refreshes: Optional[int] = None,
    ) -> None:
        """
        Load once, then re-fetch on every change signal until cancelled.

        Signals that pile up while a fetch is running are coalesced into a
        single follow-up fetch.
        """
        async with self.hub.subscribe(self.team_ids) as subscription:
            await self.refresh()
            if on_update:
                await on_update(self.items)

            async for _signal in subscription:
                subscription.drain()
                await self.refresh()
                if on_update:
                    await on_update(self.items)
                if max_refreshes is not None and self.refresh_count >= max_refreshes:
                    return


# Global hub instance
_hub: Optional[RealtimeHub] = None


def get_realtime_hub() -> RealtimeHub:
    """Get the process-wide hub, creating it if necessary."""
    global _hub
    if _hub is None:
        _hub = RealtimeHub()
    return _hub
