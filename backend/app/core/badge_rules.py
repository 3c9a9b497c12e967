"""Badge Rules - seeded badge catalogue and pure eligibility evaluation.

Invariants:
    - Badge names are unique and stable (used as seed keys)
    - Eligibility depends only on BadgeStats: no IO
    - Unknown criteria types are never eligible

Design Decisions:
    - Criteria stored as JSON on the Badge row ({type, count} or {type, days}) so new
      thresholds need a data change, not a code change
"""

from dataclasses import dataclass

from app.core.domain_types import BadgeCategory

BADGE_DEFINITIONS: tuple[dict, ...] = (
    {
        "name": "first_goal",
        "description": "Created your first goal. Every journey begins with a single step!",
        "icon": "🎯",
        "category": BadgeCategory.GOALS.value,
        "criteria": {"type": "goal_count", "count": 1},
    },
    {
        "name": "goal_setter",
        "description": "Created 5 goals. You're building a roadmap for success!",
        "icon": "📋",
        "category": BadgeCategory.GOALS.value,
        "criteria": {"type": "goal_count", "count": 5},
    },
    {
        "name": "goal_master",
        "description": "Created 25 goals. You're a goal-setting champion!",
        "icon": "🏆",
        "category": BadgeCategory.GOALS.value,
        "criteria": {"type": "goal_count", "count": 25},
    },
    {
        "name": "first_reflection",
        "description": "Completed your first evening reflection. Self-awareness is the foundation of growth!",
        "icon": "🌙",
        "category": BadgeCategory.REFLECTION.value,
        "criteria": {"type": "reflection_count", "count": 1},
    },
    {
        "name": "reflection_pro",
        "description": "Completed 10 evening reflections. You're mastering the art of self-reflection!",
        "icon": "🔮",
        "category": BadgeCategory.REFLECTION.value,
        "criteria": {"type": "reflection_count", "count": 10},
    },
    {
        "name": "first_plan",
        "description": "Created your first daily plan. Planning is bringing the future into the present!",
        "icon": "📝",
        "category": BadgeCategory.PLANNING.value,
        "criteria": {"type": "daily_plan_count", "count": 1},
    },
    {
        "name": "planning_pro",
        "description": "Created 10 daily plans. You're a planning powerhouse!",
        "icon": "📅",
        "category": BadgeCategory.PLANNING.value,
        "criteria": {"type": "daily_plan_count", "count": 10},
    },
    {
        "name": "week_warrior",
        "description": "Maintained a 7-day streak. A week of consistency is a powerful start!",
        "icon": "🔥",
        "category": BadgeCategory.STREAKS.value,
        "criteria": {"type": "streak_days", "days": 7},
    },
    {
        "name": "month_champion",
        "description": "Maintained a 30-day streak. A month of dedication pays off!",
        "icon": "💪",
        "category": BadgeCategory.STREAKS.value,
        "criteria": {"type": "streak_days", "days": 30},
    },
    {
        "name": "consistency_king",
        "description": "Maintained a 90-day streak. You're unstoppable!",
        "icon": "👑",
        "category": BadgeCategory.STREAKS.value,
        "criteria": {"type": "streak_days", "days": 90},
    },
)


@dataclass(frozen=True)
class BadgeStats:
    """Counts a user's badge eligibility is measured against."""
    goal_count: int = 0
    reflection_count: int = 0
    daily_plan_count: int = 0
    max_streak_days: int = 0


def criterion_threshold(criteria: dict) -> int | None:
    value = criteria.get("count", criteria.get("days"))
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def is_eligible(criteria: dict, stats: BadgeStats) -> bool:
    threshold = criterion_threshold(criteria)
    if threshold is None:
        return False
    observed = {
        "goal_count": stats.goal_count,
        "reflection_count": stats.reflection_count,
        "daily_plan_count": stats.daily_plan_count,
        "streak_days": stats.max_streak_days,
    }.get(criteria.get("type"))
    if observed is None:
        return False
    return observed >= threshold
