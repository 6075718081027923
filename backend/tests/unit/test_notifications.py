"""
Unit tests for event notifications.

Delivery failures must never reach the caller.
"""

import uuid
import httpx
import pytest
from unittest.mock import AsyncMock

from teamcal.services.notifications import (
    EventAction,
    EventNotice,
    LoggingNotificationDispatcher,
    WebhookNotificationDispatcher,
    dispatch_safely,
    get_notification_dispatcher,
)


def make_notice(**kwargs) -> EventNotice:
    return EventNotice(event_id=uuid.uuid4(), action=EventAction.UPDATED, **kwargs)


@pytest.mark.unit
class TestEventNotice:
    """Test the notice payload."""

    def test_payload(self):
        notice = make_notice(changed_fields=["start_time"])
        payload = notice.to_payload()

        assert payload == {
            "event_id": str(notice.event_id),
            "action": "updated",
            "changed_fields": ["start_time"],
        }

    def test_payload_with_recipients(self):
        user_id = uuid.uuid4()
        payload = make_notice(recipient_user_ids=[user_id]).to_payload()
        assert payload["recipient_user_ids"] == [str(user_id)]


@pytest.mark.unit
@pytest.mark.asyncio
class TestDispatchSafely:
    """Test failure handling around dispatchers."""

    async def test_success(self):
        dispatcher = AsyncMock()
        notice = make_notice()

        assert await dispatch_safely(dispatcher, notice) is True
        dispatcher.notify.assert_awaited_once_with(notice)

    async def test_no_dispatcher(self):
        assert await dispatch_safely(None, make_notice()) is False

    async def test_connection_error_is_swallowed(self):
        dispatcher = AsyncMock()
        dispatcher.notify.side_effect = httpx.ConnectError("connection refused")

        assert await dispatch_safely(dispatcher, make_notice()) is False

    async def test_unexpected_error_is_swallowed(self):
        dispatcher = AsyncMock()
        dispatcher.notify.side_effect = RuntimeError("boom")

        assert await dispatch_safely(dispatcher, make_notice()) is False

    async def test_logging_dispatcher(self):
        assert await dispatch_safely(LoggingNotificationDispatcher(), make_notice()) is True


@pytest.mark.unit
@pytest.mark.asyncio
class TestWebhookDispatcher:
    """Test the HTTP dispatcher with a mocked httpx client."""

    async def test_posts_payload(self, mocker):
        mock_response = mocker.Mock()
        mock_response.status_code = 202

        mock_client = AsyncMock()
        mock_client.post.return_value = mock_response
        mock_client.__aenter__.return_value = mock_client
        mocker.patch("teamcal.services.notifications.httpx.AsyncClient", return_value=mock_client)

        dispatcher = WebhookNotificationDispatcher("https://notify.test/events", token="secret")
        notice = make_notice(changed_fields=["location_name"])
        await dispatcher.notify(notice)

        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://notify.test/events"
        assert kwargs["json"] == notice.to_payload()
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    async def test_error_status_raises_but_dispatch_swallows(self, mocker):
        mock_response = mocker.Mock()
        mock_response.status_code = 500
        mock_response.text = "server error"

        mock_client = AsyncMock()
        mock_client.post.return_value = mock_response
        mock_client.__aenter__.return_value = mock_client
        mocker.patch("teamcal.services.notifications.httpx.AsyncClient", return_value=mock_client)

        dispatcher = WebhookNotificationDispatcher("https://notify.test/events")

        with pytest.raises(httpx.HTTPStatusError):
            await dispatcher.notify(make_notice())
        assert await dispatch_safely(dispatcher, make_notice()) is False


@pytest.mark.unit
def test_default_dispatcher_logs_only():
    """Without a webhook URL notices are only logged."""
    assert isinstance(get_notification_dispatcher(), LoggingNotificationDispatcher)
