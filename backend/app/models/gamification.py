"""Gamification ORM - streak counters, badge catalogue, earned badges and the points ledger.

Invariants:
    - Streak: (user_id, streak_type) unique; current_count, longest_count >= 0
    - Badge.name unique (seed key); UserBadge (user_id, badge_id) unique
    - PointsLedgerEntry.points > 0 (zero-point activities are never written)

Design Decisions:
    - Append-only ledger instead of a running total column: weekly and
      per-activity breakdowns are plain aggregates
    - Streak rows mirror core.streak_rules.StreakState; services convert both ways
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text, JSON, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.core.clock import utcnow
from app.core.domain_types import StreakType
from app.core.streak_rules import StreakState
from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Streak(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "streaks"
    __table_args__ = (
        UniqueConstraint("user_id", "streak_type", name="uq_streak_user_type"),
        CheckConstraint("current_count >= 0", name="ck_streak_current_non_negative"),
        CheckConstraint("longest_count >= 0", name="ck_streak_longest_non_negative"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    streak_type: Mapped[str] = mapped_column(String(30), nullable=False)
    current_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    longest_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_activity_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    def to_state(self) -> StreakState:
        return StreakState(
            streak_type=StreakType(self.streak_type),
            current_count=self.current_count or 0,
            longest_count=self.longest_count or 0,
            last_activity_date=self.last_activity_date,
        )

    def apply_state(self, state: StreakState) -> None:
        self.current_count = state.current_count
        self.longest_count = state.longest_count
        self.last_activity_date = state.last_activity_date


class Badge(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "badges"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    criteria: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)


class UserBadge(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    badge_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("badges.id", ondelete="CASCADE"), nullable=False,
    )
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )


class PointsLedgerEntry(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "points_ledger_entries"
    __table_args__ = (
        CheckConstraint("points > 0", name="ck_points_positive"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    activity_type: Mapped[str] = mapped_column(String(40), nullable=False)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True,
    )
