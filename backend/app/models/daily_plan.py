"""Daily Plan ORM - one plan per user, family and local date, with tasks, priorities and habit check-ins.

Invariants:
    - (user_id, family_id, date) unique
    - Child collections are owned: replaced wholesale on update, deleted with the plan
    - TopPriority.priority_order in 1..3
    - completion_awarded_at set once, the first time the plan reaches 100%

Design Decisions:
    - Children loaded eagerly (selectin): every plan read renders all three lists
    - New plans are constructed with empty child lists so async code never lazy-loads
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class DailyPlan(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "daily_plans"
    __table_args__ = (
        UniqueConstraint("user_id", "family_id", "date", name="uq_daily_plan_user_family_date"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    family_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    plan_date: Mapped[date] = mapped_column("date", Date, nullable=False, index=True)
    intention: Mapped[str | None] = mapped_column(Text, nullable=True)
    shutdown_shipped: Mapped[str | None] = mapped_column(Text, nullable=True)
    shutdown_blocked: Mapped[str | None] = mapped_column(Text, nullable=True)
    completion_awarded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    tasks: Mapped[list["DailyTask"]] = relationship(
        "DailyTask", cascade="all, delete-orphan", lazy="selectin",
        order_by="DailyTask.position",
    )
    top_priorities: Mapped[list["TopPriority"]] = relationship(
        "TopPriority", cascade="all, delete-orphan", lazy="selectin",
        order_by="TopPriority.priority_order",
    )
    habit_completions: Mapped[list["HabitCompletion"]] = relationship(
        "HabitCompletion", cascade="all, delete-orphan", lazy="selectin",
    )

    @property
    def has_content(self) -> bool:
        return bool(
            self.tasks
            or any((p.title or "").strip() for p in self.top_priorities)
            or (self.intention or "").strip()
        )


class DailyTask(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "daily_tasks"

    daily_plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("daily_plans.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goal_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("goals.id", ondelete="SET NULL"), nullable=True,
    )


class TopPriority(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "top_priorities"

    daily_plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("daily_plans.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    priority_order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    goal_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("goals.id", ondelete="SET NULL"), nullable=True,
    )


class HabitCompletion(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "habit_completions"
    __table_args__ = (
        UniqueConstraint("daily_plan_id", "habit_id", name="uq_habit_completion_plan_habit"),
    )

    daily_plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("daily_plans.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    habit_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("habits.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
