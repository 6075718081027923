"""
Unit tests for the realtime hub and live calendar.
"""

import asyncio
import uuid
import pytest

from teamcal.services.realtime import (
    SUBSCRIBER_QUEUE_SIZE,
    ChangeTable,
    LiveCalendar,
    RealtimeHub,
)


@pytest.mark.unit
@pytest.mark.asyncio
class TestRealtimeHub:
    """Test signal fan-out."""

    async def test_publish_reaches_team_subscribers_only(self):
        hub = RealtimeHub()
        team_a, team_b = uuid.uuid4(), uuid.uuid4()
        sub_a = hub.subscribe([team_a])
        sub_b = hub.subscribe([team_b])

        delivered = hub.publish(team_a, ChangeTable.EVENTS)

        assert delivered == 1
        signal = await asyncio.wait_for(sub_a.get(), timeout=1)
        assert signal.team_id == team_a
        assert signal.to_dict() == {"team_id": str(team_a), "table": "cal_events"}
        assert sub_b.drain() == []

    async def test_close_unsubscribes(self):
        hub = RealtimeHub()
        team_id = uuid.uuid4()

        async with hub.subscribe([team_id]):
            assert hub.subscriber_count(team_id) == 1

        assert hub.subscriber_count(team_id) == 0
        assert hub.publish(team_id, ChangeTable.RSVPS) == 0

    async def test_full_queue_drops_signals(self):
        hub = RealtimeHub()
        team_id = uuid.uuid4()
        subscription = hub.subscribe([team_id])

        for _ in range(SUBSCRIBER_QUEUE_SIZE + 5):
            hub.publish(team_id, ChangeTable.EVENTS)

        assert len(subscription.drain()) == SUBSCRIBER_QUEUE_SIZE


@pytest.mark.unit
@pytest.mark.asyncio
class TestLiveCalendar:
    """Test re-fetch on change."""

    async def test_refetches_on_signal(self):
        hub = RealtimeHub()
        team_id = uuid.uuid4()
        state = {"items": ["practice"]}

        async def fetch():
            return list(state["items"])

        updates = []

        async def on_update(items):
            updates.append(items)

        live = LiveCalendar(hub, [team_id], fetch)
        task = asyncio.create_task(live.run(on_update=on_update, max_refreshes=2))

        # Wait for the initial load before changing anything
        for _ in range(100):
            if updates:
                break
            await asyncio.sleep(0.01)

        state["items"] = ["practice", "game"]
        hub.publish(team_id, ChangeTable.EVENTS)
        await asyncio.wait_for(task, timeout=1)

        assert updates == [["practice"], ["practice", "game"]]
        assert live.items == ["practice", "game"]
        assert hub.subscriber_count(team_id) == 0

    async def test_queued_signals_coalesce(self):
        hub = RealtimeHub()
        team_id = uuid.uuid4()
        calls = {"count": 0}
        loaded = asyncio.Event()

        async def fetch():
            calls["count"] += 1
            loaded.set()
            return [calls["count"]]

        live = LiveCalendar(hub, [team_id], fetch)
        task = asyncio.create_task(live.run(max_refreshes=2))
        await asyncio.wait_for(loaded.wait(), timeout=1)

        # Three signals before the loop wakes up produce one re-fetch
        for _ in range(3):
            hub.publish(team_id, ChangeTable.RSVPS)
        await asyncio.wait_for(task, timeout=1)

        assert calls["count"] == 2
