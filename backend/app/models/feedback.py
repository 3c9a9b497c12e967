"""Feedback ORM - bug reports, feature requests and NPS responses (anonymous allowed).

Invariants:
    - status is a FeedbackStatus value; resolved_at is set when status becomes resolved
    - assigned_to and duplicate_of are triage fields, written only through the admin routes
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class FeedbackReport(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "feedback_reports"

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    report_type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    severity: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="new")
    context_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    allow_contact: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Triage
    assigned_to_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    duplicate_of_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("feedback_reports.id", ondelete="SET NULL"), nullable=True,
    )
    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
