"""Unit tests for event API routes.

Tests permission checks, error mapping and response formatting.
All service dependencies are mocked to isolate route behavior.
"""

import uuid
import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, Mock

from fastapi import HTTPException

from teamcal.api.exceptions import http_error
from teamcal.api.routes.events import create_event, delete_event, list_events
from teamcal.models.event import Event
from teamcal.schemas.event import EventCreate
from teamcal.services.cancellation import DeleteResult, DeleteScope
from teamcal.services.errors import (
    AccessDeniedError,
    EmptyRecurrenceError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from teamcal.services.roster import CallerContext


def make_event(team_id, **overrides) -> Event:
    now = datetime.now(timezone.utc)
    values = dict(
        id=uuid.uuid4(),
        team_id=team_id,
        created_by=uuid.uuid4(),
        title="Practice",
        event_type="practice",
        event_date=date(2024, 6, 3),
        is_all_day=False,
        is_cancelled=False,
        created_at=now,
        updated_at=now,
    )
    values.update(overrides)
    return Event(**values)


@pytest.mark.unit
class TestErrorMapping:
    """Test how calendar failures become HTTP errors."""

    def test_validation(self):
        error = http_error(ValidationError("Title is required", field="title"))
        assert error.status_code == 400
        assert error.detail == "Title is required"

    def test_empty_recurrence_is_validation(self):
        assert http_error(EmptyRecurrenceError()).status_code == 400

    def test_not_found(self):
        assert http_error(NotFoundError("Event", "abc")).status_code == 404

    def test_access_denied(self):
        assert http_error(AccessDeniedError("no")).status_code == 403

    def test_storage(self):
        error = http_error(StorageError("connection reset"))
        assert error.status_code == 503
        assert "connection reset" not in error.detail


@pytest.mark.unit
@pytest.mark.asyncio
class TestEventRoutes:
    """Test route-level permission checks."""

    async def test_create_event_requires_staff(self):
        caller = CallerContext(user_id=uuid.uuid4())
        roster = Mock()
        roster.is_staff = AsyncMock(return_value=False)
        service = Mock()
        service.create_single = AsyncMock()

        data = EventCreate(team_id=uuid.uuid4(), title="Practice", event_date=date(2024, 6, 3))

        with pytest.raises(HTTPException) as exc_info:
            await create_event(data=data, caller=caller, roster=roster, service=service)

        assert exc_info.value.status_code == 403
        service.create_single.assert_not_called()

    async def test_create_event_passes_draft(self):
        caller = CallerContext(user_id=uuid.uuid4())
        team_id = uuid.uuid4()
        roster = Mock()
        roster.is_staff = AsyncMock(return_value=True)
        service = Mock()
        service.create_single = AsyncMock(return_value=make_event(team_id))

        data = EventCreate(team_id=team_id, title="Practice", event_date=date(2024, 6, 3))
        result = await create_event(data=data, caller=caller, roster=roster, service=service)

        assert result.title == "Practice"
        assert result.can_manage is True
        args = service.create_single.call_args.args
        assert args[0] == caller
        assert args[1] == team_id
        assert args[2].title == "Practice"
        assert args[2].event_date == date(2024, 6, 3)

    async def test_list_events_rejects_bad_scope(self):
        caller = CallerContext(user_id=uuid.uuid4())
        aggregator = Mock()
        aggregator.events_in_range = AsyncMock()

        with pytest.raises(HTTPException) as exc_info:
            await list_events(team_id="everyone", start=None, end=None, caller=caller, aggregator=aggregator)

        assert exc_info.value.status_code == 400
        aggregator.events_in_range.assert_not_called()

    async def test_delete_event_reports_scope(self):
        caller = CallerContext(user_id=uuid.uuid4())
        team_id = uuid.uuid4()
        event = make_event(team_id)
        roster = Mock()
        roster.is_staff = AsyncMock(return_value=True)
        controller = Mock()
        controller.events.require_event = AsyncMock(return_value=event)
        controller.delete = AsyncMock(return_value=DeleteResult(
            event_id=event.id, scope=DeleteScope.FUTURE, deleted_count=4
        ))

        result = await delete_event(
            event_id=event.id,
            scope=DeleteScope.FUTURE,
            caller=caller,
            roster=roster,
            controller=controller,
        )

        assert result.deleted_count == 4
        assert result.scope == "future"
        controller.delete.assert_awaited_once_with(event.id, DeleteScope.FUTURE)
