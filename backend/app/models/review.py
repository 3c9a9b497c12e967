"""Review ORM - weekly, monthly, quarterly and annual retrospectives.

Invariants:
    - One review per (user, family, period anchor) for every kind
    - Anchors: week_start_date (family week start), month (1st of month),
      quarter_start (1st of Jan/Apr/Jul/Oct), year
    - completed_at set when completed flips false -> true

Design Decisions:
    - Four tables instead of one polymorphic table: each kind has its own
      free-text fields and unique period column
    - ReviewMixin carries the shared ownership/completion columns
    - List-shaped answers (wins, challenges...) stored as JSON arrays
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean, Date, DateTime, ForeignKey, Integer, String, Text, JSON, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ReviewMixin(UUIDPrimaryKeyMixin, TimestampMixin):
    @declared_attr
    def user_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
        )

    @declared_attr
    def family_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True,
        )

    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class WeeklyReview(ReviewMixin, Base):
    __tablename__ = "weekly_reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "family_id", "week_start_date", name="uq_weekly_review_period"),
    )

    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    wins: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    challenges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    next_week_priorities: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    lessons_learned: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class MonthlyReview(ReviewMixin, Base):
    __tablename__ = "monthly_reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "family_id", "month", name="uq_monthly_review_period"),
    )

    month: Mapped[date] = mapped_column(Date, nullable=False)
    highlights: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    challenges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    next_month_focus: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    lessons_learned: Mapped[str | None] = mapped_column(Text, nullable=True)


class QuarterlyReview(ReviewMixin, Base):
    __tablename__ = "quarterly_reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "family_id", "quarter_start", name="uq_quarterly_review_period"),
    )

    quarter_start: Mapped[date] = mapped_column(Date, nullable=False)
    achievements: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    obstacles: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    next_quarter_objectives: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    insights: Mapped[str | None] = mapped_column(Text, nullable=True)


class AnnualReview(ReviewMixin, Base):
    __tablename__ = "annual_reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "family_id", "year", name="uq_annual_review_period"),
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)
    year_highlights: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    year_challenges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    next_year_themes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    lessons_learned: Mapped[str | None] = mapped_column(Text, nullable=True)
    word_of_the_year: Mapped[str | None] = mapped_column(String(50), nullable=True)
