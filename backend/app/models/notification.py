"""Notification ORM - in-app notifications, delivery preferences, device tokens and SMS log.

Invariants:
    - NotificationPreference.user_id unique (find-or-create per user)
    - Preference times are "HH:MM" strings; weekly_review_day in 0..6 (Sunday=0)
    - DeviceToken (user_id, token) unique
    - read_at NULL means unread

Design Decisions:
    - Times kept as strings: they are wall-clock values in the family timezone,
      not instants, so a TIME/TIMESTAMP column would invite conversion bugs
    - SmsLog rows back the per-day SMS quota
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.core.clock import utcnow
from app.core.domain_types import NotificationType
from app.core.reminder_schedule import ReminderSettings
from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Notification(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "notifications"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notification_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default=NotificationType.GENERAL.value,
    )
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True,
    )


class NotificationPreference(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "notification_preferences"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True,
    )
    in_app: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    push: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sms: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    morning_planning: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    evening_reflection: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    weekly_review: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    morning_planning_time: Mapped[str] = mapped_column(String(5), nullable=False, default="07:00")
    evening_reflection_time: Mapped[str] = mapped_column(String(5), nullable=False, default="20:00")
    weekly_review_time: Mapped[str] = mapped_column(String(5), nullable=False, default="18:00")
    weekly_review_day: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quiet_hours_start: Mapped[str] = mapped_column(String(5), nullable=False, default="22:00")
    quiet_hours_end: Mapped[str] = mapped_column(String(5), nullable=False, default="07:00")

    def to_settings(self) -> ReminderSettings:
        return ReminderSettings(
            morning_planning=self.morning_planning,
            evening_reflection=self.evening_reflection,
            weekly_review=self.weekly_review,
            morning_planning_time=self.morning_planning_time,
            evening_reflection_time=self.evening_reflection_time,
            weekly_review_time=self.weekly_review_time,
            weekly_review_day=self.weekly_review_day,
            quiet_hours_start=self.quiet_hours_start,
            quiet_hours_end=self.quiet_hours_end,
        )


class DeviceToken(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "device_tokens"
    __table_args__ = (
        UniqueConstraint("user_id", "token", name="uq_device_token_user_token"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    token: Mapped[str] = mapped_column(String(500), nullable=False)
    platform: Mapped[str] = mapped_column(String(20), nullable=False)
    device_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SmsLog(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "sms_logs"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    provider_sid: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True,
    )
