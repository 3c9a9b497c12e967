"""Reminder Jobs - due-reminder delivery and broken-streak resets across all users.

Invariants:
    - A reminder is sent when the user's family-local HH:MM equals the configured time
      (weekly reminders also match the day) and it is outside quiet hours
    - At most one reminder of each type per user per local day: an existing reminder
      notification with the same link created since local midnight blocks a resend
    - Streak resets use each user's family-local date

Design Decisions:
    - Plain async functions taking a session: the scheduler (cron, k8s CronJob) runs
      `python -m app.jobs.reminders <job>` every minute / every night
    - Each user is processed independently: a HearthError for one user is logged with
      the user id and the loop continues with the next
    - Reminders are mirrored to SMS through the Twilio gateway when the user opted in
"""

import asyncio
import logging
import sys
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.clock import local_now, utcnow
from app.core.domain_types import NotificationType
from app.core.errors import HearthError
from app.core.reminder_schedule import (
    REMINDER_CONTENT, SCHEDULED_REMINDERS, ReminderSettings, is_reminder_due,
)
from app.db.session import create_session_factory
from app.infrastructure.observability import setup_logging
from app.infrastructure.sms_gateway import SmsGateway, get_sms_gateway
from app.models.gamification import Streak
from app.models.notification import Notification, NotificationPreference
from app.services import notification_service, streak_service
from app.services.family_access import user_timezone

logger = logging.getLogger(__name__)


async def _sent_since(db: AsyncSession, user_id, link: str, since: datetime) -> bool:
    result = await db.execute(
        select(Notification.id).where(
            Notification.user_id == user_id,
            Notification.notification_type == NotificationType.REMINDER.value,
            Notification.link == link,
            Notification.created_at >= since,
        ).limit(1),
    )
    return result.first() is not None


async def _send_user_reminders(
    db: AsyncSession, user_id, settings: ReminderSettings, now: datetime, gateway: SmsGateway,
) -> int:
    now_local = local_now(await user_timezone(db, user_id), now)
    local_midnight = now_local.replace(hour=0, minute=0, second=0, microsecond=0)
    since = local_midnight.astimezone(timezone.utc)
    sent = 0
    for reminder_type in SCHEDULED_REMINDERS:
        if not is_reminder_due(settings, reminder_type, now_local):
            continue
        link = REMINDER_CONTENT[reminder_type.value][2]
        if await _sent_since(db, user_id, link, since):
            continue
        await notification_service.send_reminder(db, user_id, reminder_type, now, gateway)
        sent += 1
    return sent


async def send_due_reminders(
    db: AsyncSession, now: datetime | None = None, gateway: SmsGateway | None = None,
) -> int:
    now = now or utcnow()
    gateway = gateway or get_sms_gateway()
    preferences = (await db.execute(select(NotificationPreference))).scalars().all()
    sent = 0
    for user_id, settings in [(p.user_id, p.to_settings()) for p in preferences]:
        try:
            sent += await _send_user_reminders(db, user_id, settings, now, gateway)
        except HearthError as e:
            logger.error(
                f"Reminder delivery failed: {e.message}",
                extra={"job": "send_due_reminders", "user_id": user_id},
            )
    logger.info(f"Sent {sent} reminder(s)", extra={"job": "send_due_reminders"})
    return sent


async def reset_broken_streaks(db: AsyncSession, now: datetime | None = None) -> int:
    user_ids = (await db.execute(select(Streak.user_id).distinct())).scalars().all()
    reset = 0
    for user_id in user_ids:
        today = local_now(await user_timezone(db, user_id), now).date()
        try:
            reset += await streak_service.check_and_reset_broken_streaks(db, user_id, today)
        except HearthError as e:
            logger.error(
                f"Streak reset failed: {e.message}",
                extra={"job": "reset_broken_streaks", "user_id": user_id},
            )
    logger.info(f"Reset {reset} streak(s)", extra={"job": "reset_broken_streaks"})
    return reset


JOBS = {
    "send_due_reminders": send_due_reminders,
    "reset_broken_streaks": reset_broken_streaks,
}


async def run(job_name: str) -> int:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    engine, session_factory = create_session_factory(settings.database_url)
    try:
        async with session_factory() as db:
            result = await JOBS[job_name](db)
            await db.commit()
            return result
    finally:
        await engine.dispose()


if __name__ == "__main__":
    names = sys.argv[1:] or list(JOBS)
    unknown = [n for n in names if n not in JOBS]
    if unknown:
        sys.exit(f"Unknown job(s): {', '.join(unknown)}. Available: {', '.join(JOBS)}")
    for name in names:
        asyncio.run(run(name))
