"""Account Service - password change, account deletion and personal data export.

Invariants:
    - Password change and deletion both require the current password
    - Deleting an account removes every row the user owns, children first; feedback
      reports survive with their user (and assignee) nulled
    - Goals created by the user are removed; their sub-goals stay, detached from the parent
    - The export covers the user's own data only: memberships, daily plans, the latest
      100 notifications and notification preferences

Design Decisions:
    - Explicit bulk DELETEs in dependency order, like family deletion, so behaviour is
      identical on PostgreSQL and SQLite (where FK cascades are off)
"""

import logging

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.errors import ValidationError
from app.infrastructure.security import hash_password, verify_password
from app.models.daily_plan import DailyPlan, DailyTask, HabitCompletion, TopPriority
from app.models.family import Family, FamilyMembership, Invitation
from app.models.feedback import FeedbackReport
from app.models.gamification import PointsLedgerEntry, Streak, UserBadge
from app.models.goal import Goal, GoalAssignment
from app.models.habit import Habit
from app.models.notification import (
    DeviceToken, Notification, NotificationPreference, SmsLog,
)
from app.models.reflection import Reflection, ReflectionResponse
from app.models.review import AnnualReview, MonthlyReview, QuarterlyReview, WeeklyReview
from app.models.user import RefreshToken, User

logger = logging.getLogger(__name__)

EXPORTED_NOTIFICATIONS_LIMIT = 100


# ─── Credentials ─────────────────────────────────────────────────

def change_password(
    user: User, current_password: str, password: str, password_confirmation: str,
) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect", field="current_password")
    if password != password_confirmation:
        raise ValidationError("Password confirmation doesn't match", field="password_confirmation")
    user.password_hash = hash_password(password)
    logger.info("Password changed", extra={"user_id": user.id})


async def revoke_all_refresh_tokens(db: AsyncSession, user: User) -> None:
    await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user.id, RefreshToken.revoked_at.is_(None))
        .values(revoked_at=utcnow())
        .execution_options(synchronize_session=False),
    )


# ─── Deletion ────────────────────────────────────────────────────

async def delete_account(db: AsyncSession, user: User, password: str) -> None:
    if not verify_password(password, user.password_hash):
        raise ValidationError("Password is incorrect", field="password")

    user_id = user.id
    plan_ids = select(DailyPlan.id).where(DailyPlan.user_id == user_id)
    reflection_ids = select(Reflection.id).where(Reflection.daily_plan_id.in_(plan_ids))
    habit_ids = select(Habit.id).where(Habit.user_id == user_id)
    goal_ids = select(Goal.id).where(Goal.creator_id == user_id)

    statements = [
        update(FeedbackReport).where(FeedbackReport.user_id == user_id).values(user_id=None),
        update(FeedbackReport).where(FeedbackReport.assigned_to_id == user_id).values(assigned_to_id=None),
        delete(ReflectionResponse).where(ReflectionResponse.reflection_id.in_(reflection_ids)),
        delete(Reflection).where(Reflection.daily_plan_id.in_(plan_ids)),
        delete(DailyTask).where(DailyTask.daily_plan_id.in_(plan_ids)),
        delete(TopPriority).where(TopPriority.daily_plan_id.in_(plan_ids)),
        delete(HabitCompletion).where(
            or_(HabitCompletion.daily_plan_id.in_(plan_ids), HabitCompletion.habit_id.in_(habit_ids)),
        ),
        delete(DailyPlan).where(DailyPlan.user_id == user_id),
        delete(Habit).where(Habit.user_id == user_id),
        update(Goal).where(Goal.parent_id.in_(goal_ids)).values(parent_id=None),
        update(DailyTask).where(DailyTask.goal_id.in_(goal_ids)).values(goal_id=None),
        update(TopPriority).where(TopPriority.goal_id.in_(goal_ids)).values(goal_id=None),
        delete(GoalAssignment).where(
            or_(GoalAssignment.user_id == user_id, GoalAssignment.goal_id.in_(goal_ids)),
        ),
        delete(Goal).where(Goal.creator_id == user_id),
        delete(WeeklyReview).where(WeeklyReview.user_id == user_id),
        delete(MonthlyReview).where(MonthlyReview.user_id == user_id),
        delete(QuarterlyReview).where(QuarterlyReview.user_id == user_id),
        delete(AnnualReview).where(AnnualReview.user_id == user_id),
        delete(Streak).where(Streak.user_id == user_id),
        delete(UserBadge).where(UserBadge.user_id == user_id),
        delete(PointsLedgerEntry).where(PointsLedgerEntry.user_id == user_id),
        delete(Notification).where(Notification.user_id == user_id),
        delete(NotificationPreference).where(NotificationPreference.user_id == user_id),
        delete(DeviceToken).where(DeviceToken.user_id == user_id),
        delete(SmsLog).where(SmsLog.user_id == user_id),
        delete(Invitation).where(Invitation.inviter_id == user_id),
        delete(FamilyMembership).where(FamilyMembership.user_id == user_id),
        delete(RefreshToken).where(RefreshToken.user_id == user_id),
        delete(User).where(User.id == user_id),
    ]
    for statement in statements:
        await db.execute(statement.execution_options(synchronize_session=False))
    db.expunge_all()
    logger.info("Account deleted", extra={"user_id": user_id})


# ─── Export ──────────────────────────────────────────────────────

def _iso(value) -> str | None:
    return value.isoformat() if value else None


async def _export_families(db: AsyncSession, user: User) -> list[dict]:
    result = await db.execute(
        select(FamilyMembership, Family)
        .join(Family, Family.id == FamilyMembership.family_id)
        .where(FamilyMembership.user_id == user.id)
        .order_by(FamilyMembership.created_at),
    )
    return [
        {
            "family_id": str(family.id),
            "family_name": family.name,
            "role": membership.role,
            "joined_at": _iso(membership.created_at),
        }
        for membership, family in result.all()
    ]


async def _export_daily_plans(db: AsyncSession, user: User) -> list[dict]:
    result = await db.execute(
        select(DailyPlan).where(DailyPlan.user_id == user.id).order_by(DailyPlan.plan_date),
    )
    return [
        {
            "id": str(plan.id),
            "date": plan.plan_date.isoformat(),
            "intention": plan.intention,
            "tasks": [{"title": t.title, "completed": t.completed} for t in plan.tasks],
            "priorities": [
                {"title": p.title, "order": p.priority_order} for p in plan.top_priorities
            ],
            "created_at": _iso(plan.created_at),
        }
        for plan in result.scalars().all()
    ]


async def _export_notifications(db: AsyncSession, user: User) -> list[dict]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user.id)
        .order_by(Notification.created_at.desc())
        .limit(EXPORTED_NOTIFICATIONS_LIMIT),
    )
    return [
        {
            "title": n.title,
            "body": n.body,
            "notification_type": n.notification_type,
            "read": n.read_at is not None,
            "created_at": _iso(n.created_at),
        }
        for n in result.scalars().all()
    ]


async def _export_preferences(db: AsyncSession, user: User) -> dict:
    result = await db.execute(
        select(NotificationPreference).where(NotificationPreference.user_id == user.id),
    )
    pref = result.scalar_one_or_none()
    if pref is None:
        return {}
    return {
        "channels": {"in_app": pref.in_app, "email": pref.email, "push": pref.push, "sms": pref.sms},
        "reminders": {
            "morning_planning": {"enabled": pref.morning_planning, "time": pref.morning_planning_time},
            "evening_reflection": {"enabled": pref.evening_reflection, "time": pref.evening_reflection_time},
            "weekly_review": {
                "enabled": pref.weekly_review, "time": pref.weekly_review_time,
                "day": pref.weekly_review_day,
            },
        },
        "quiet_hours": {"start": pref.quiet_hours_start, "end": pref.quiet_hours_end},
    }


async def export_user_data(db: AsyncSession, user: User) -> dict:
    return {
        "exported_at": utcnow().isoformat(),
        "user": {
            "id": str(user.id),
            "email": user.email,
            "name": user.name,
            "avatar_url": user.avatar_url,
            "created_at": _iso(user.created_at),
            "updated_at": _iso(user.updated_at),
        },
        "families": await _export_families(db, user),
        "daily_plans": await _export_daily_plans(db, user),
        "notifications": await _export_notifications(db, user),
        "notification_preferences": await _export_preferences(db, user),
    }
