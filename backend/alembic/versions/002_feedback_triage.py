"""Feedback triage and NPS prompt tracking.

Revision ID: 002_feedback_triage
Revises: 001_initial
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "002_feedback_triage"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("users", sa.Column("last_nps_prompt_date", sa.DateTime(timezone=True), nullable=True))
    op.add_column("feedback_reports", sa.Column(
        "assigned_to_id", UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    ))
    op.add_column("feedback_reports", sa.Column(
        "duplicate_of_id", UUID(as_uuid=True),
        sa.ForeignKey("feedback_reports.id", ondelete="SET NULL"), nullable=True,
    ))
    op.add_column("feedback_reports", sa.Column("internal_notes", sa.Text, nullable=True))
    op.create_index("ix_feedback_reports_status", "feedback_reports", ["status"])


def downgrade() -> None:
    op.drop_index("ix_feedback_reports_status", table_name="feedback_reports")
    op.drop_column("feedback_reports", "internal_notes")
    op.drop_column("feedback_reports", "duplicate_of_id")
    op.drop_column("feedback_reports", "assigned_to_id")
    op.drop_column("users", "last_nps_prompt_date")
