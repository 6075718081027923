"""Team notifications for event changes.

Notices are fire-and-forget: a failed delivery is logged and dropped,
it never fails the command that produced it.
"""
import enum
import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

import httpx

from teamcal.config import get_settings

logger = logging.getLogger(__name__)


class EventAction(str, enum.Enum):
    """What happened to the event."""
    CREATED = "created"
    UPDATED = "updated"
    CANCELLED = "cancelled"
    UNCANCELLED = "uncancelled"
    RSVP_REMINDER = "rsvp_reminder"


@dataclass
class EventNotice:
    """Payload handed to a dispatcher."""
    event_id: uuid.UUID
    action: EventAction
    changed_fields: List[str] = field(default_factory=list)
    recipient_user_ids: List[uuid.UUID] = field(default_factory=list)

    def to_payload(self) -> dict:
        payload = {
            "event_id": str(self.event_id),
            "action": self.action.value,
            "changed_fields": list(self.changed_fields),
        }
        if self.recipient_user_ids:
            payload["recipient_user_ids"] = [str(u) for u in self.recipient_user_ids]
        return payload


class NotificationDispatcher(Protocol):
    """Anything that can deliver an EventNotice."""

    async def notify(self, notice: EventNotice) -> None:
        """Deliver the notice. May raise; callers go through dispatch_safely."""
        ...


class LoggingNotificationDispatcher:
    """Dispatcher used when no delivery endpoint is configured."""

    async def notify(self, notice: EventNotice) -> None:
        logger.info(
            f"[EventNotifications] {notice.action.value} event {notice.event_id} "
            f"changed={notice.changed_fields}"
        )


class WebhookNotificationDispatcher:
    """Posts notices to the team notification function over HTTP."""

    def __init__(self, url: str, token: str = "", timeout: float = 10.0):
        self.url = url
        self.token = token
        self.timeout = timeout

    async def notify(self, notice: EventNotice) -> None:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, headers=headers, json=notice.to_payload())

        if response.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"Notification endpoint returned {response.status_code}: {response.text}",
                request=response.request,
                response=response,
            )
        logger.info(f"[EventNotifications] Sent {notice.action.value} for event {notice.event_id}")


async def dispatch_safely(dispatcher: Optional[NotificationDispatcher], notice: EventNotice) -> bool:
    """
    Deliver a notice, swallowing any failure.

    Returns:
        True if the dispatcher accepted the notice, False otherwise
    """
    if dispatcher is None:
        return False

    try:
        await dispatcher.notify(notice)
        return True
    except (httpx.ConnectError, httpx.TimeoutException) as e:
        logger.warning(f"[EventNotifications] Endpoint unavailable for event {notice.event_id}: {e}")
    except Exception as e:
        logger.error(
            f"[EventNotifications] Failed to send {notice.action.value} for event "
            f"{notice.event_id}: {e}"
        )
    return False


def get_notification_dispatcher() -> NotificationDispatcher:
    """Dispatcher for the configured environment."""
    settings = get_settings()
    if settings.NOTIFY_WEBHOOK_URL:
        return WebhookNotificationDispatcher(
            url=settings.NOTIFY_WEBHOOK_URL,
            token=settings.NOTIFY_WEBHOOK_TOKEN,
            timeout=settings.NOTIFY_TIMEOUT_SECONDS,
        )
    return LoggingNotificationDispatcher()
