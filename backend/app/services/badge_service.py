"""Badge Service - seeds the catalogue, gathers user statistics and awards eligible badges.

Invariants:
    - seed_badges() is idempotent: existing names are left untouched
    - A badge is awarded at most once per user (UserBadge unique + pre-check)
    - Awarding = UserBadge row + "Badge Earned!" notification + earn_badge points

Design Decisions:
    - Eligibility is decided by core.badge_rules.is_eligible over a BadgeStats snapshot;
      this module only counts rows
    - Category checks are cheap enough to run inline after the triggering write
"""

import logging
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.badge_rules import BADGE_DEFINITIONS, BadgeStats, is_eligible
from app.core.domain_types import ActivityType, BadgeCategory, NotificationType
from app.models.daily_plan import DailyPlan, DailyTask
from app.models.gamification import Badge, Streak, UserBadge
from app.models.goal import Goal
from app.models.reflection import Reflection
from app.services import notification_service, points_service

logger = logging.getLogger(__name__)


async def seed_badges(db: AsyncSession) -> int:
    existing = set((await db.execute(select(Badge.name))).scalars().all())
    created = 0
    for definition in BADGE_DEFINITIONS:
        if definition["name"] in existing:
            continue
        db.add(Badge(**definition))
        created += 1
    if created:
        await db.flush()
        logger.info(f"Seeded {created} badges")
    return created


async def all_badges(db: AsyncSession) -> list[Badge]:
    result = await db.execute(select(Badge).order_by(Badge.category, Badge.name))
    return list(result.scalars().all())


async def badge_stats(db: AsyncSession, user_id: UUID) -> BadgeStats:
    goal_count = await db.scalar(
        select(func.count(Goal.id)).where(Goal.creator_id == user_id),
    )
    reflection_count = await db.scalar(
        select(func.count(Reflection.id))
        .join(DailyPlan, DailyPlan.id == Reflection.daily_plan_id)
        .where(DailyPlan.user_id == user_id),
    )
    daily_plan_count = await db.scalar(
        select(func.count(DailyPlan.id)).where(
            DailyPlan.user_id == user_id,
            exists().where(DailyTask.daily_plan_id == DailyPlan.id),
        ),
    )
    max_streak = await db.scalar(
        select(func.max(Streak.longest_count)).where(Streak.user_id == user_id),
    )
    return BadgeStats(
        goal_count=goal_count or 0,
        reflection_count=reflection_count or 0,
        daily_plan_count=daily_plan_count or 0,
        max_streak_days=max_streak or 0,
    )


async def earned_badges(db: AsyncSession, user_id: UUID) -> dict[UUID, UserBadge]:
    result = await db.execute(select(UserBadge).where(UserBadge.user_id == user_id))
    return {ub.badge_id: ub for ub in result.scalars().all()}


async def award_badge(db: AsyncSession, user_id: UUID, badge: Badge) -> UserBadge | None:
    if badge.id in await earned_badges(db, user_id):
        return None
    user_badge = UserBadge(user_id=user_id, badge_id=badge.id)
    db.add(user_badge)
    display = badge.name.replace("_", " ").title()
    await notification_service.notify(
        db, user_id,
        "Badge Earned!",
        f"You earned the {display} badge: {badge.description}",
        "/badges",
        NotificationType.BADGE_EARNED,
    )
    await points_service.award(
        db, user_id, ActivityType.EARN_BADGE, {"badge_id": str(badge.id), "badge_name": badge.name},
    )
    logger.info(f"Badge {badge.name} awarded", extra={"user_id": user_id})
    return user_badge


async def check_badges(
    db: AsyncSession, user_id: UUID, category: BadgeCategory | None = None,
) -> list[Badge]:
    """Award every eligible, not-yet-earned badge (optionally in one category)."""
    await db.flush()
    query = select(Badge)
    if category is not None:
        query = query.where(Badge.category == BadgeCategory(category).value)
    badges = (await db.execute(query.order_by(Badge.name))).scalars().all()
    if not badges:
        return []

    stats = await badge_stats(db, user_id)
    earned = await earned_badges(db, user_id)
    awarded = []
    for badge in badges:
        if badge.id in earned or not is_eligible(badge.criteria or {}, stats):
            continue
        if await award_badge(db, user_id, badge):
            awarded.append(badge)
    return awarded


async def user_badge_summary(db: AsyncSession, user_id: UUID) -> dict:
    badges = await all_badges(db)
    earned = await earned_badges(db, user_id)
    entries = []
    for badge in badges:
        user_badge = earned.get(badge.id)
        entries.append({
            **badge_to_dict(badge),
            "earned": user_badge is not None,
            "earned_at": user_badge.earned_at.isoformat() if user_badge else None,
        })
    return {
        "badges": entries,
        "earned_count": sum(1 for e in entries if e["earned"]),
        "total_count": len(entries),
    }


def badge_to_dict(badge: Badge) -> dict:
    return {
        "id": str(badge.id),
        "name": badge.name,
        "description": badge.description,
        "icon": badge.icon,
        "category": badge.category,
        "criteria": badge.criteria or {},
    }
