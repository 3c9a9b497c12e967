"""Initial schema - users, families, goals, planning, reviews, gamification, notifications.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", UUID(as_uuid=True), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _fk(name: str, target: str, nullable: bool = False, ondelete: str = "CASCADE") -> sa.Column:
    return sa.Column(
        name, UUID(as_uuid=True), sa.ForeignKey(f"{target}.id", ondelete=ondelete), nullable=nullable,
    )


def upgrade() -> None:
    # ─── Accounts ────────────────────────────────────────────────
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False, server_default=""),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("phone_number", sa.String(20), nullable=True, unique=True),
        sa.Column("phone_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("first_actions", sa.JSON, nullable=False, server_default="{}"),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "refresh_tokens",
        _id(),
        _fk("user_id", "users"),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"])

    # ─── Families ────────────────────────────────────────────────
    op.create_table(
        "families",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("settings", sa.JSON, nullable=False, server_default="{}"),
        *_timestamps(),
    )

    op.create_table(
        "family_memberships",
        _id(),
        _fk("family_id", "families"),
        _fk("user_id", "users"),
        sa.Column("role", sa.String(20), nullable=False, server_default="observer"),
        *_timestamps(),
        sa.UniqueConstraint("family_id", "user_id", name="uq_membership_family_user"),
    )
    op.create_index("ix_family_memberships_family_id", "family_memberships", ["family_id"])
    op.create_index("ix_family_memberships_user_id", "family_memberships", ["user_id"])

    op.create_table(
        "invitations",
        _id(),
        _fk("family_id", "families"),
        _fk("inviter_id", "users"),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="adult"),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_invitations_family_id", "invitations", ["family_id"])
    op.create_index("ix_invitations_token", "invitations", ["token"], unique=True)

    # ─── Goals ───────────────────────────────────────────────────
    op.create_table(
        "goals",
        _id(),
        _fk("family_id", "families"),
        _fk("creator_id", "users"),
        _fk("parent_id", "goals", nullable=True, ondelete="SET NULL"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("specific", sa.Text, nullable=True),
        sa.Column("measurable", sa.Text, nullable=True),
        sa.Column("achievable", sa.Text, nullable=True),
        sa.Column("relevant", sa.Text, nullable=True),
        sa.Column("time_bound", sa.Text, nullable=True),
        sa.Column("time_scale", sa.String(20), nullable=False, server_default="annual"),
        sa.Column("status", sa.String(20), nullable=False, server_default="not_started"),
        sa.Column("visibility", sa.String(20), nullable=False, server_default="family"),
        sa.Column("progress", sa.Integer, nullable=False, server_default="0"),
        sa.Column("due_date", sa.Date, nullable=True),
        sa.Column("is_draft", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("position", sa.Integer, nullable=True),
        *_timestamps(),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_goal_progress_range"),
    )
    op.create_index("ix_goals_family_id", "goals", ["family_id"])
    op.create_index("ix_goals_creator_id", "goals", ["creator_id"])
    op.create_index("ix_goals_parent_id", "goals", ["parent_id"])

    op.create_table(
        "goal_assignments",
        _id(),
        _fk("goal_id", "goals"),
        _fk("user_id", "users"),
        *_timestamps(),
        sa.UniqueConstraint("goal_id", "user_id", name="uq_goal_assignment"),
    )
    op.create_index("ix_goal_assignments_goal_id", "goal_assignments", ["goal_id"])
    op.create_index("ix_goal_assignments_user_id", "goal_assignments", ["user_id"])

    # ─── Daily planning ──────────────────────────────────────────
    op.create_table(
        "habits",
        _id(),
        _fk("user_id", "users"),
        _fk("family_id", "families"),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_habits_user_id", "habits", ["user_id"])
    op.create_index("ix_habits_family_id", "habits", ["family_id"])

    op.create_table(
        "daily_plans",
        _id(),
        _fk("user_id", "users"),
        _fk("family_id", "families"),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("intention", sa.Text, nullable=True),
        sa.Column("shutdown_shipped", sa.Text, nullable=True),
        sa.Column("shutdown_blocked", sa.Text, nullable=True),
        sa.Column("completion_awarded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "family_id", "date", name="uq_daily_plan_user_family_date"),
    )
    op.create_index("ix_daily_plans_user_id", "daily_plans", ["user_id"])
    op.create_index("ix_daily_plans_family_id", "daily_plans", ["family_id"])
    op.create_index("ix_daily_plans_date", "daily_plans", ["date"])

    op.create_table(
        "daily_tasks",
        _id(),
        _fk("daily_plan_id", "daily_plans"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        _fk("goal_id", "goals", nullable=True, ondelete="SET NULL"),
        *_timestamps(),
    )
    op.create_index("ix_daily_tasks_daily_plan_id", "daily_tasks", ["daily_plan_id"])

    op.create_table(
        "top_priorities",
        _id(),
        _fk("daily_plan_id", "daily_plans"),
        sa.Column("title", sa.String(255), nullable=False, server_default=""),
        sa.Column("priority_order", sa.Integer, nullable=False, server_default="1"),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        _fk("goal_id", "goals", nullable=True, ondelete="SET NULL"),
        *_timestamps(),
    )
    op.create_index("ix_top_priorities_daily_plan_id", "top_priorities", ["daily_plan_id"])

    op.create_table(
        "habit_completions",
        _id(),
        _fk("daily_plan_id", "daily_plans"),
        _fk("habit_id", "habits"),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("daily_plan_id", "habit_id", name="uq_habit_completion_plan_habit"),
    )
    op.create_index("ix_habit_completions_daily_plan_id", "habit_completions", ["daily_plan_id"])
    op.create_index("ix_habit_completions_habit_id", "habit_completions", ["habit_id"])

    op.create_table(
        "reflections",
        _id(),
        _fk("daily_plan_id", "daily_plans"),
        sa.Column("reflection_type", sa.String(20), nullable=False, server_default="evening"),
        sa.Column("mood", sa.Integer, nullable=True),
        sa.Column("energy_level", sa.Integer, nullable=True),
        sa.Column("gratitude_items", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_reflections_daily_plan_id", "reflections", ["daily_plan_id"])

    op.create_table(
        "reflection_responses",
        _id(),
        _fk("reflection_id", "reflections"),
        sa.Column("prompt", sa.String(500), nullable=False),
        sa.Column("response", sa.Text, nullable=False, server_default=""),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_reflection_responses_reflection_id", "reflection_responses", ["reflection_id"])

    # ─── Periodic reviews ────────────────────────────────────────
    def review_table(name: str, period_column: sa.Column, *columns: sa.Column) -> None:
        op.create_table(
            name,
            _id(),
            _fk("user_id", "users"),
            _fk("family_id", "families"),
            period_column,
            *columns,
            sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint(
                "user_id", "family_id", period_column.name,
                name=f"uq_{name[:-1]}_period",
            ),
        )
        op.create_index(f"ix_{name}_user_id", name, ["user_id"])
        op.create_index(f"ix_{name}_family_id", name, ["family_id"])

    review_table(
        "weekly_reviews",
        sa.Column("week_start_date", sa.Date, nullable=False),
        sa.Column("wins", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("challenges", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("next_week_priorities", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("lessons_learned", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
    )
    review_table(
        "monthly_reviews",
        sa.Column("month", sa.Date, nullable=False),
        sa.Column("highlights", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("challenges", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("next_month_focus", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("lessons_learned", sa.Text, nullable=True),
    )
    review_table(
        "quarterly_reviews",
        sa.Column("quarter_start", sa.Date, nullable=False),
        sa.Column("achievements", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("obstacles", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("next_quarter_objectives", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("insights", sa.Text, nullable=True),
    )
    review_table(
        "annual_reviews",
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("year_highlights", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("year_challenges", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("next_year_themes", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("lessons_learned", sa.Text, nullable=True),
        sa.Column("word_of_the_year", sa.String(50), nullable=True),
    )

    # ─── Gamification ────────────────────────────────────────────
    op.create_table(
        "streaks",
        _id(),
        _fk("user_id", "users"),
        sa.Column("streak_type", sa.String(30), nullable=False),
        sa.Column("current_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("longest_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_activity_date", sa.Date, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "streak_type", name="uq_streak_user_type"),
        sa.CheckConstraint("current_count >= 0", name="ck_streak_current_non_negative"),
        sa.CheckConstraint("longest_count >= 0", name="ck_streak_longest_non_negative"),
    )
    op.create_index("ix_streaks_user_id", "streaks", ["user_id"])

    op.create_table(
        "badges",
        _id(),
        sa.Column("name", sa.String(50), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("icon", sa.String(16), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("criteria", sa.JSON, nullable=False, server_default="{}"),
        *_timestamps(),
    )
    op.create_index("ix_badges_category", "badges", ["category"])

    op.create_table(
        "user_badges",
        _id(),
        _fk("user_id", "users"),
        _fk("badge_id", "badges"),
        sa.Column("earned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),
    )
    op.create_index("ix_user_badges_user_id", "user_badges", ["user_id"])

    op.create_table(
        "points_ledger_entries",
        _id(),
        _fk("user_id", "users"),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("activity_type", sa.String(40), nullable=False),
        sa.Column("metadata", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("points > 0", name="ck_points_positive"),
    )
    op.create_index("ix_points_ledger_entries_user_id", "points_ledger_entries", ["user_id"])
    op.create_index("ix_points_ledger_entries_created_at", "points_ledger_entries", ["created_at"])

    # ─── Notifications ───────────────────────────────────────────
    op.create_table(
        "notifications",
        _id(),
        _fk("user_id", "users"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text, nullable=True),
        sa.Column("link", sa.String(500), nullable=True),
        sa.Column("notification_type", sa.String(30), nullable=False, server_default="general"),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "notification_preferences",
        _id(),
        sa.Column(
            "user_id", UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False, unique=True,
        ),
        sa.Column("in_app", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("email", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("push", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("sms", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("morning_planning", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("evening_reflection", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("weekly_review", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("morning_planning_time", sa.String(5), nullable=False, server_default="07:00"),
        sa.Column("evening_reflection_time", sa.String(5), nullable=False, server_default="20:00"),
        sa.Column("weekly_review_time", sa.String(5), nullable=False, server_default="18:00"),
        sa.Column("weekly_review_day", sa.Integer, nullable=False, server_default="0"),
        sa.Column("quiet_hours_start", sa.String(5), nullable=False, server_default="22:00"),
        sa.Column("quiet_hours_end", sa.String(5), nullable=False, server_default="07:00"),
        *_timestamps(),
    )

    op.create_table(
        "device_tokens",
        _id(),
        _fk("user_id", "users"),
        sa.Column("token", sa.String(500), nullable=False),
        sa.Column("platform", sa.String(20), nullable=False),
        sa.Column("device_name", sa.String(100), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "token", name="uq_device_token_user_token"),
    )
    op.create_index("ix_device_tokens_user_id", "device_tokens", ["user_id"])

    op.create_table(
        "sms_logs",
        _id(),
        _fk("user_id", "users"),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("provider_sid", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_sms_logs_user_id", "sms_logs", ["user_id"])
    op.create_index("ix_sms_logs_created_at", "sms_logs", ["created_at"])

    # ─── Feedback ────────────────────────────────────────────────
    op.create_table(
        "feedback_reports",
        _id(),
        _fk("user_id", "users", nullable=True, ondelete="SET NULL"),
        sa.Column("report_type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("severity", sa.String(20), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="new"),
        sa.Column("context_data", sa.JSON, nullable=False, server_default="{}"),
        sa.Column("allow_contact", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_feedback_reports_user_id", "feedback_reports", ["user_id"])


def downgrade() -> None:
    for table in (
        "feedback_reports",
        "sms_logs",
        "device_tokens",
        "notification_preferences",
        "notifications",
        "points_ledger_entries",
        "user_badges",
        "badges",
        "streaks",
        "annual_reviews",
        "quarterly_reviews",
        "monthly_reviews",
        "weekly_reviews",
        "reflection_responses",
        "reflections",
        "habit_completions",
        "top_priorities",
        "daily_tasks",
        "daily_plans",
        "habits",
        "goal_assignments",
        "goals",
        "invitations",
        "family_memberships",
        "families",
        "refresh_tokens",
        "users",
    ):
        op.drop_table(table)
