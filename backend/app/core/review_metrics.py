"""Review Metrics - pure aggregation behind daily-plan stats and periodic review dashboards.

Invariants:
    - Every rate is round(part / whole * 100) with halves rounded up; whole == 0 -> 0
    - Inputs are plain snapshots (PlanSnapshot, GoalSnapshot): no ORM objects, no IO
    - Output dicts are JSON-ready and keyed exactly as the API returns them

Design Decisions:
    - Services load rows and build snapshots; this module only counts and divides
      (ADR: metrics reproducible in unit tests without fixtures)
    - Half-up rounding instead of Python's banker's rounding so 12.5% shows as 13%
"""

import math
from collections import Counter
from dataclasses import dataclass
from datetime import date

from app.core.domain_types import GoalStatus


def rate(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return math.floor(part / whole * 100 + 0.5)


def rounded_mean(values: list[int]) -> int:
    if not values:
        return 0
    return math.floor(sum(values) / len(values) + 0.5)


# ─── Snapshots ───────────────────────────────────────────────────

@dataclass(frozen=True)
class PlanSnapshot:
    plan_date: date
    tasks_total: int = 0
    tasks_completed: int = 0
    completed_habit_names: tuple[str, ...] = ()


@dataclass(frozen=True)
class GoalSnapshot:
    status: str
    progress: int = 0
    is_draft: bool = False


@dataclass(frozen=True)
class ChildProgress:
    progress: int
    status: str
    is_draft: bool = False


@dataclass
class PlanCompletion:
    total: int = 0
    completed: int = 0
    percentage: int = 0

    def to_dict(self) -> dict:
        return {"total": self.total, "completed": self.completed, "percentage": self.percentage}


# ─── Daily plan ──────────────────────────────────────────────────

def plan_completion(
    priorities: list[tuple[str, bool]], habit_completions: list[bool],
) -> PlanCompletion:
    """Top priorities with a non-blank title plus every habit completion row."""
    titled = [done for title, done in priorities if title and title.strip()]
    total = len(titled) + len(habit_completions)
    completed = sum(1 for d in titled if d) + sum(1 for d in habit_completions if d)
    return PlanCompletion(total=total, completed=completed, percentage=rate(completed, total))


# ─── Goals ───────────────────────────────────────────────────────

def aggregated_progress(own_progress: int, children: list[ChildProgress]) -> int:
    """Mean progress of non-abandoned children, drafts included.

    Own progress only when the goal has no children at all; 0 when every child is abandoned.
    """
    if not children:
        return own_progress
    active = [c.progress for c in children if c.status != GoalStatus.ABANDONED.value]
    return rounded_mean(active)


def goal_progress(goals: list[GoalSnapshot]) -> dict:
    return {
        "total_goals": len(goals),
        "completed_goals": sum(1 for g in goals if g.status == GoalStatus.COMPLETED.value),
        "in_progress_goals": sum(1 for g in goals if g.status == GoalStatus.IN_PROGRESS.value),
        "at_risk_goals": sum(1 for g in goals if g.status == GoalStatus.AT_RISK.value),
        "average_progress": rounded_mean([g.progress for g in goals]),
    }


def annual_goals_achieved(goals: list[GoalSnapshot]) -> dict:
    return {
        "total_annual_goals": len(goals),
        "completed_goals": sum(1 for g in goals if g.status == GoalStatus.COMPLETED.value),
        "in_progress_goals": sum(1 for g in goals if g.status == GoalStatus.IN_PROGRESS.value),
        "abandoned_goals": sum(1 for g in goals if g.status == GoalStatus.ABANDONED.value),
        "average_progress": rounded_mean([g.progress for g in goals]),
    }


# ─── Tasks & habits ──────────────────────────────────────────────

def task_completion(plans: list[PlanSnapshot]) -> dict:
    total = sum(p.tasks_total for p in plans)
    completed = sum(p.tasks_completed for p in plans)
    return {
        "total_tasks": total,
        "completed_tasks": completed,
        "completion_rate": rate(completed, total),
        "days_with_plans": sum(1 for p in plans if p.tasks_total > 0),
    }


def habit_tally(plans: list[PlanSnapshot]) -> dict[str, int]:
    tally: Counter[str] = Counter()
    for plan in plans:
        tally.update(plan.completed_habit_names)
    return dict(tally)


# ─── Consistency ─────────────────────────────────────────────────

def reflection_consistency(total_days: int, reflections_completed: int) -> dict:
    return {
        "total_days": total_days,
        "reflections_completed": reflections_completed,
        "consistency_rate": rate(reflections_completed, total_days),
    }


def monthly_review_completion(completed_reviews: int) -> dict:
    return {
        "total_months": 3,
        "completed_reviews": completed_reviews,
        "completion_rate": rate(completed_reviews, 3),
    }


def weekly_review_consistency(completed_weekly_reviews: int, total_weeks: int = 13) -> dict:
    return {
        "total_weeks": total_weeks,
        "completed_weekly_reviews": completed_weekly_reviews,
        "consistency_rate": rate(completed_weekly_reviews, total_weeks),
    }


def review_consistency(quarterly: int, monthly: int, weekly: int) -> dict:
    return {
        "quarterly_reviews": {"completed": quarterly, "total": 4, "rate": rate(quarterly, 4)},
        "monthly_reviews": {"completed": monthly, "total": 12, "rate": rate(monthly, 12)},
        "weekly_reviews": {"completed": weekly, "total": 52, "rate": rate(weekly, 52)},
    }


def streaks_maintained(longest_by_type: dict[str, int]) -> dict:
    return {
        "longest_daily_planning_streak": longest_by_type.get("daily_planning", 0),
        "longest_reflection_streak": longest_by_type.get("evening_reflection", 0),
        "longest_weekly_review_streak": longest_by_type.get("weekly_review", 0),
    }
