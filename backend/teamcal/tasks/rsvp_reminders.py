"""Daily reminder for team members who have not answered tomorrow's events."""
import logging
from datetime import date, timedelta
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from teamcal.config import get_settings
from teamcal.database import AsyncSessionLocal
from teamcal.models.event import Event
from teamcal.models.rsvp import EventRSVP, RSVPStatus
from teamcal.services.notifications import (
    EventAction,
    EventNotice,
    NotificationDispatcher,
    dispatch_safely,
    get_notification_dispatcher,
)
from teamcal.services.roster import DatabaseRoster

logger = logging.getLogger(__name__)

ANSWERED_STATUSES = (
    RSVPStatus.YES.value,
    RSVPStatus.NO.value,
    RSVPStatus.MAYBE.value,
)


async def send_rsvp_reminders(
    session: AsyncSession,
    dispatcher: NotificationDispatcher,
    today: Optional[date] = None,
) -> int:
    """
    Remind members about tomorrow's events they have not answered.

    Members with no RSVP row or a "pending" one are reminded. Cancelled
    events are skipped.

    Returns:
        Number of reminder notices sent
    """
    target_date = (today or date.today()) + timedelta(days=1)
    roster = DatabaseRoster(session)

    result = await session.execute(
        select(Event).where(
            Event.event_date == target_date,
            Event.is_cancelled == False,
        )
    )
    events = result.scalars().all()
    if not events:
        logger.info(f"RSVP reminders: no events on {target_date}")
        return 0

    sent = 0
    for event in events:
        members = await roster.member_user_ids(event.team_id)
        if not members:
            continue

        answered_result = await session.execute(
            select(EventRSVP.user_id).where(
                EventRSVP.event_id == event.id,
                EventRSVP.status.in_(ANSWERED_STATUSES),
            )
        )
        answered = set(answered_result.scalars().all())
        waiting = [user_id for user_id in members if user_id not in answered]
        if not waiting:
            continue

        delivered = await dispatch_safely(
            dispatcher,
            EventNotice(
                event_id=event.id,
                action=EventAction.RSVP_REMINDER,
                recipient_user_ids=waiting,
            ),
        )
        if delivered:
            sent += 1
            logger.info(f"RSVP reminder for event {event.id} sent to {len(waiting)} members")

    return sent


async def process_rsvp_reminders():
    """Scheduled entry point."""
    async with AsyncSessionLocal() as session:
        try:
            sent = await send_rsvp_reminders(session, get_notification_dispatcher())
            logger.info(f"RSVP reminder processing complete ({sent} notices)")
        except Exception as e:
            logger.error(f"Error processing RSVP reminders: {e}", exc_info=True)


def schedule_rsvp_reminder_job(scheduler: AsyncIOScheduler):
    """Register the RSVP reminder job if enabled."""
    settings = get_settings()
    if not settings.RSVP_REMINDER_ENABLED:
        logger.info("RSVP reminders disabled - job not scheduled")
        return

    scheduler.add_job(
        process_rsvp_reminders,
        'interval',
        hours=settings.RSVP_REMINDER_INTERVAL_HOURS,
        id='rsvp_reminders',
        name='RSVP Reminders',
        replace_existing=True
    )
    logger.info(
        f"Scheduled RSVP reminder job (every {settings.RSVP_REMINDER_INTERVAL_HOURS} hours)"
    )
