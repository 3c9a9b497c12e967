"""Reflection ORM - evening/quick/periodic reflections attached to a daily plan.

Invariants:
    - Every reflection belongs to exactly one daily plan (owner = plan owner)
    - mood and energy_level in 1..5 when present
    - responses ordered by position, replaced wholesale on update
"""

import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.core.domain_types import ReflectionType
from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Reflection(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "reflections"

    daily_plan_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("daily_plans.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    reflection_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReflectionType.EVENING.value,
    )
    mood: Mapped[int | None] = mapped_column(Integer, nullable=True)
    energy_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gratitude_items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    responses: Mapped[list["ReflectionResponse"]] = relationship(
        "ReflectionResponse", cascade="all, delete-orphan", lazy="selectin",
        order_by="ReflectionResponse.position",
    )


class ReflectionResponse(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "reflection_responses"

    reflection_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("reflections.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    prompt: Mapped[str] = mapped_column(String(500), nullable=False)
    response: Mapped[str] = mapped_column(Text, nullable=False, default="")
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
