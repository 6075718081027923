"""
Unit tests for CancellationController.

Tests the Active/Cancelled transitions and delete scope resolution.
"""

import pytest
from datetime import date

from teamcal.services.cancellation import CancellationController, DeleteScope, EventState
from teamcal.services.event_service import EventDraft
from teamcal.services.rsvp_service import RSVPService


@pytest.fixture
def controller(event_service) -> CancellationController:
    return CancellationController(event_service)


@pytest.mark.unit
@pytest.mark.asyncio
class TestCancelRestore:
    """Test cancellation state transitions."""

    async def test_round_trip_keeps_rsvps(
        self, controller: CancellationController, event_service, db_session, team, coach, parent, dispatcher
    ):
        event = await event_service.create_single(
            coach, team.id, EventDraft(title="Practice", event_date=date(2024, 6, 3))
        )
        rsvps = RSVPService(db_session)
        await rsvps.respond(event.id, parent.user_id, "yes")
        await rsvps.respond(event.id, coach.user_id, "maybe")
        before = await rsvps.counts(event.id)

        cancelled = await controller.cancel(event.id, "Thunderstorm")
        assert EventState.of(cancelled) == EventState.CANCELLED
        assert await rsvps.counts(event.id) == before

        restored = await controller.restore(event.id)
        assert EventState.of(restored) == EventState.ACTIVE
        assert restored.cancelled_reason is None
        assert await rsvps.counts(event.id) == before

        assert dispatcher.actions() == ["created", "cancelled", "uncancelled"]

    async def test_recancel_rewrites_reason_quietly(
        self, controller: CancellationController, event_service, team, coach, dispatcher
    ):
        event = await event_service.create_single(
            coach, team.id, EventDraft(title="Practice", event_date=date(2024, 6, 3))
        )
        await controller.cancel(event.id, "Rain")

        again = await controller.cancel(event.id, "Lightning")

        assert again.is_cancelled is True
        assert again.cancelled_reason == "Lightning"
        assert dispatcher.actions() == ["created", "cancelled"]

    async def test_restore_active_event_is_noop(
        self, controller: CancellationController, event_service, team, coach, dispatcher
    ):
        event = await event_service.create_single(
            coach, team.id, EventDraft(title="Practice", event_date=date(2024, 6, 3))
        )

        restored = await controller.restore(event.id)

        assert restored.is_cancelled is False
        assert dispatcher.actions() == ["created"]


@pytest.mark.unit
@pytest.mark.asyncio
class TestDeleteScope:
    """Test single and future deletes."""

    async def test_future_delete_on_series(self, controller: CancellationController, event_service, team, coach):
        events = await event_service.create_recurring(
            coach, team.id, EventDraft(title="Practice"),
            start_date=date(2024, 6, 3), end_date=date(2024, 6, 17), weekdays=["M", "W"],
        )

        result = await controller.delete(events[2].id, DeleteScope.FUTURE)

        assert result.scope == DeleteScope.FUTURE
        assert result.deleted_count == 3
        remaining = await event_service.list_group(events[0].recurrence_group_id)
        assert [e.id for e in remaining] == [events[0].id, events[1].id]

    async def test_single_delete_on_series(self, controller: CancellationController, event_service, team, coach):
        events = await event_service.create_recurring(
            coach, team.id, EventDraft(title="Practice"),
            start_date=date(2024, 6, 3), end_date=date(2024, 6, 17), weekdays=["M", "W"],
        )

        result = await controller.delete(events[2].id, DeleteScope.SINGLE)

        assert result.deleted_count == 1
        remaining = await event_service.list_group(events[0].recurrence_group_id)
        assert len(remaining) == 4
        assert events[2].id not in {e.id for e in remaining}

    async def test_future_delete_without_series(self, controller: CancellationController, event_service, team, coach):
        event = await event_service.create_single(
            coach, team.id, EventDraft(title="Practice", event_date=date(2024, 6, 3))
        )

        result = await controller.delete(event.id, "future")

        assert result.scope == DeleteScope.SINGLE
        assert result.deleted_count == 1
        assert await event_service.get_event(event.id) is None
