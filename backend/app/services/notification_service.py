"""Notification Service - in-app records, push hand-off and quota-limited SMS.

Invariants:
    - notify() always writes the in-app Notification, whatever the preferences say
    - Push is attempted only when: preference.push AND a device token exists AND
      the user's family-local time is outside quiet hours
    - SMS requires preference.sms, a verified phone number and remaining daily quota
      (MAX_SMS_PER_DAY, counted from SmsLog rows since UTC midnight)

Design Decisions:
    - Push delivery is a logged hand-off: no provider SDK is wired in, the record of
      which devices would be targeted is the observable behaviour
    - Preferences are find-or-create so every user has defaults on first touch
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import local_now, utcnow
from app.core.domain_types import NotificationType, ReminderType
from app.core.reminder_schedule import REMINDER_CONTENT, within_quiet_hours
from app.core.sms_rules import remaining_sms_quota
from app.infrastructure.sms_gateway import SmsGateway
from app.models.notification import DeviceToken, Notification, NotificationPreference, SmsLog
from app.models.user import User
from app.services.family_access import user_timezone

logger = logging.getLogger(__name__)


# ─── Preferences ─────────────────────────────────────────────────

async def find_or_create_preference(db: AsyncSession, user_id: UUID) -> NotificationPreference:
    result = await db.execute(
        select(NotificationPreference).where(NotificationPreference.user_id == user_id),
    )
    preference = result.scalar_one_or_none()
    if preference is None:
        preference = NotificationPreference(user_id=user_id)
        db.add(preference)
        await db.flush()
    return preference


# ─── In-app + push ───────────────────────────────────────────────

async def notify(
    db: AsyncSession,
    user_id: UUID,
    title: str,
    body: str | None = None,
    link: str | None = None,
    notification_type: NotificationType = NotificationType.GENERAL,
    now: datetime | None = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        body=body,
        link=link,
        notification_type=NotificationType(notification_type).value,
    )
    db.add(notification)
    await db.flush()
    await push_notification(db, user_id, notification, now)
    return notification


async def push_notification(
    db: AsyncSession, user_id: UUID, notification: Notification, now: datetime | None = None,
) -> bool:
    """Hand the notification off to the user's devices. Returns False when a gate blocks it."""
    preference = await find_or_create_preference(db, user_id)
    if not preference.push:
        return False
    tokens = (await db.execute(
        select(DeviceToken).where(DeviceToken.user_id == user_id),
    )).scalars().all()
    if not tokens:
        return False
    tz_name = await user_timezone(db, user_id)
    if within_quiet_hours(preference.to_settings(), local_now(tz_name, now)):
        logger.info("Push suppressed by quiet hours", extra={"user_id": user_id})
        return False
    platforms = sorted({t.platform for t in tokens})
    logger.info(
        f"Push hand-off for notification {notification.id} to {len(tokens)} device(s) "
        f"on {', '.join(platforms)}",
        extra={"user_id": user_id},
    )
    return True


async def send_reminder(
    db: AsyncSession,
    user_id: UUID,
    reminder_type: ReminderType,
    now: datetime | None = None,
    gateway: SmsGateway | None = None,
) -> Notification:
    """In-app (+ push) reminder, mirrored to SMS when a gateway is given and SMS is allowed."""
    title, body, link = REMINDER_CONTENT[ReminderType(reminder_type).value]
    notification = await notify(db, user_id, title, body, link, NotificationType.REMINDER, now=now)
    if gateway is not None:
        user = await db.get(User, user_id)
        if user is not None:
            await send_sms(db, gateway, user, f"{title}: {body}", now)
    return notification


async def unread_count(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.read_at.is_(None),
        ),
    )
    return int(result.scalar_one())


async def mark_all_read(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read_at.is_(None))
        .values(read_at=utcnow())
        .execution_options(synchronize_session=False),
    )
    return result.rowcount or 0


# ─── SMS ─────────────────────────────────────────────────────────

def _utc_midnight(now: datetime | None = None) -> datetime:
    now = now or utcnow()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


async def sms_count_today(db: AsyncSession, user_id: UUID, now: datetime | None = None) -> int:
    result = await db.execute(
        select(func.count(SmsLog.id)).where(
            SmsLog.user_id == user_id, SmsLog.created_at >= _utc_midnight(now),
        ),
    )
    return int(result.scalar_one())


async def send_sms(
    db: AsyncSession, gateway: SmsGateway, user: User, body: str, now: datetime | None = None,
) -> bool:
    preference = await find_or_create_preference(db, user.id)
    if not (preference.sms and user.phone_number and user.phone_verified):
        return False
    if remaining_sms_quota(await sms_count_today(db, user.id, now)) <= 0:
        logger.warning("Daily SMS quota reached", extra={"user_id": user.id})
        return False
    sid = await gateway.send(user.phone_number, body)
    if sid is None:
        return False
    db.add(SmsLog(user_id=user.id, body=body, provider_sid=sid))
    return True
