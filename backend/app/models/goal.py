"""Goal ORM - hierarchical family goals with SMART fields, visibility and assignments.

Invariants:
    - progress in [0, 100] (DB check + schema validation)
    - parent_id nullified (not cascaded) when the parent goal is deleted
    - is_draft goals come from AI sub-goal generation and are hidden from default lists
    - position NULL means "unordered": sorted after positioned goals by created_at desc

Design Decisions:
    - Visibility and status stored as enum strings (String columns), validated via core.domain_types
    - assignments loaded eagerly (selectin): visibility checks need them on every read
"""

import uuid
from datetime import date

from sqlalchemy import (
    Boolean, CheckConstraint, Date, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.core.domain_types import GoalStatus, GoalVisibility, TimeScale
from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Goal(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "goals"
    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_goal_progress_range"),
    )

    family_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    creator_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("goals.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    specific: Mapped[str | None] = mapped_column(Text, nullable=True)
    measurable: Mapped[str | None] = mapped_column(Text, nullable=True)
    achievable: Mapped[str | None] = mapped_column(Text, nullable=True)
    relevant: Mapped[str | None] = mapped_column(Text, nullable=True)
    time_bound: Mapped[str | None] = mapped_column(Text, nullable=True)
    time_scale: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TimeScale.ANNUAL.value,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=GoalStatus.NOT_STARTED.value,
    )
    visibility: Mapped[str] = mapped_column(
        String(20), nullable=False, default=GoalVisibility.FAMILY.value,
    )
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_draft: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)

    assignments: Mapped[list["GoalAssignment"]] = relationship(
        "GoalAssignment", cascade="all, delete-orphan", lazy="selectin",
    )

    @property
    def assignee_ids(self) -> list[uuid.UUID]:
        return [a.user_id for a in self.assignments]


class GoalAssignment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "goal_assignments"
    __table_args__ = (
        UniqueConstraint("goal_id", "user_id", name="uq_goal_assignment"),
    )

    goal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
