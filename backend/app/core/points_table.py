"""Points Table - activity point values and human-readable labels."""

from app.core.domain_types import ActivityType

ACTIVITY_POINTS: dict[str, int] = {
    ActivityType.COMPLETE_TASK.value: 5,
    ActivityType.COMPLETE_DAILY_PLAN.value: 10,
    ActivityType.COMPLETE_REFLECTION.value: 20,
    ActivityType.COMPLETE_WEEKLY_REVIEW.value: 50,
    ActivityType.CREATE_GOAL.value: 15,
    ActivityType.COMPLETE_GOAL.value: 30,
    ActivityType.EARN_BADGE.value: 25,
    ActivityType.STREAK_MILESTONE.value: 50,
}

ACTIVITY_LABELS: dict[str, str] = {
    ActivityType.COMPLETE_TASK.value: "Completed a task",
    ActivityType.COMPLETE_DAILY_PLAN.value: "Completed daily plan",
    ActivityType.COMPLETE_REFLECTION.value: "Completed a reflection",
    ActivityType.COMPLETE_WEEKLY_REVIEW.value: "Completed weekly review",
    ActivityType.CREATE_GOAL.value: "Created a goal",
    ActivityType.COMPLETE_GOAL.value: "Completed a goal",
    ActivityType.EARN_BADGE.value: "Earned a badge",
    ActivityType.STREAK_MILESTONE.value: "Reached a streak milestone",
}

DEFAULT_RECENT_LIMIT = 20
MAX_RECENT_LIMIT = 100


def points_for(activity_type: str) -> int:
    """Point value for an activity; 0 for anything unknown."""
    return ACTIVITY_POINTS.get(str(getattr(activity_type, "value", activity_type)), 0)


def label_for(activity_type: str) -> str:
    return ACTIVITY_LABELS.get(activity_type, activity_type.replace("_", " ").capitalize())


def clamp_recent_limit(raw: str | int | None) -> int:
    """Parse ?limit=; anything outside 1..100 (or unparseable) falls back to the default."""
    try:
        value = int(raw) if raw is not None else DEFAULT_RECENT_LIMIT
    except (TypeError, ValueError):
        return DEFAULT_RECENT_LIMIT
    if value < 1 or value > MAX_RECENT_LIMIT:
        return DEFAULT_RECENT_LIMIT
    return value
