"""Streak Service - persists streak transitions and fires milestone side effects.

Invariants:
    - Every StreakType row exists after get_all_streaks() (created lazily at zero)
    - record() delegates the transition to core.streak_rules.record_activity
    - A milestone (current_count in MILESTONE_THRESHOLDS) notifies once and awards
      streak_milestone points, only when the activity was actually recorded
    - Resetting keeps longest_count

Design Decisions:
    - Streak badge checks run after every recorded activity: longest_count is
      the only input to the streak badges
"""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ActivityType, BadgeCategory, NotificationType, StreakType
from app.core.streak_rules import (
    is_at_risk, milestone_reached, next_milestone, record_activity, reset_if_broken,
)
from app.models.gamification import Streak
from app.services import badge_service, notification_service, points_service

logger = logging.getLogger(__name__)

STREAK_LABELS = {
    StreakType.DAILY_PLANNING.value: "daily planning",
    StreakType.EVENING_REFLECTION.value: "evening reflection",
    StreakType.WEEKLY_REVIEW.value: "weekly review",
}


async def find_or_create(db: AsyncSession, user_id: UUID, streak_type: StreakType) -> Streak:
    result = await db.execute(
        select(Streak).where(
            Streak.user_id == user_id, Streak.streak_type == StreakType(streak_type).value,
        ),
    )
    streak = result.scalar_one_or_none()
    if streak is None:
        streak = Streak(
            user_id=user_id,
            streak_type=StreakType(streak_type).value,
            current_count=0,
            longest_count=0,
        )
        db.add(streak)
        await db.flush()
    return streak


async def get_all_streaks(db: AsyncSession, user_id: UUID) -> list[Streak]:
    return [await find_or_create(db, user_id, t) for t in StreakType]


async def record(
    db: AsyncSession, user_id: UUID, streak_type: StreakType, activity_date: date,
) -> Streak:
    streak = await find_or_create(db, user_id, streak_type)
    new_state, recorded = record_activity(streak.to_state(), activity_date)
    if not recorded:
        return streak

    streak.apply_state(new_state)
    if milestone_reached(new_state.current_count):
        await _celebrate(db, user_id, streak)
    await badge_service.check_badges(db, user_id, BadgeCategory.STREAKS)
    return streak


async def _celebrate(db: AsyncSession, user_id: UUID, streak: Streak) -> None:
    label = STREAK_LABELS.get(streak.streak_type, streak.streak_type)
    unit = "week" if streak.streak_type == StreakType.WEEKLY_REVIEW.value else "day"
    await notification_service.notify(
        db, user_id,
        "Streak Milestone!",
        f"You've reached a {streak.current_count}-{unit} {label} streak. Keep it up!",
        "/streaks",
        NotificationType.STREAK_MILESTONE,
    )
    await points_service.award(
        db, user_id, ActivityType.STREAK_MILESTONE,
        {"streak_type": streak.streak_type, "count": streak.current_count},
    )
    logger.info(
        f"Streak milestone {streak.streak_type}={streak.current_count}", extra={"user_id": user_id},
    )


async def check_and_reset_broken_streaks(db: AsyncSession, user_id: UUID, today: date) -> int:
    reset = 0
    for streak in await get_all_streaks(db, user_id):
        new_state, changed = reset_if_broken(streak.to_state(), today)
        if changed:
            streak.apply_state(new_state)
            reset += 1
    if reset:
        logger.info(f"Reset {reset} broken streak(s)", extra={"user_id": user_id})
    return reset


def streak_to_dict(streak: Streak, today: date) -> dict:
    state = streak.to_state()
    return {
        "id": str(streak.id),
        "streak_type": streak.streak_type,
        "current_count": streak.current_count,
        "longest_count": streak.longest_count,
        "last_activity_date": (
            streak.last_activity_date.isoformat() if streak.last_activity_date else None
        ),
        "at_risk": is_at_risk(state, today),
        "next_milestone": next_milestone(streak.current_count),
    }
