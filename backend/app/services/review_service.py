"""Review Service - weekly, monthly, quarterly and annual reviews over one generic code path.

Invariants:
    - One review per (user, family, period); current() is find-or-create for the
      period containing today in the family timezone
    - Weekly periods start on the family's week_start_day (default Monday)
    - completed false -> true stamps completed_at; weekly additionally awards
      complete_weekly_review points and records the weekly_review streak at week_start
    - Metrics are computed from live rows on every request (never cached on the review)

Design Decisions:
    - ReviewKindConfig registry instead of four near-identical services: the kinds differ
      only in model, period column and answer fields
    - Metric arithmetic lives in core/review_metrics.py; this module loads snapshots
"""

import logging
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import local_today, utcnow
from app.core.domain_types import (
    ActivityType, GoalVisibility, ReviewKind, StreakType, TimeScale,
)
from app.core.errors import ResourceNotFoundError
from app.core.review_metrics import (
    GoalSnapshot, PlanSnapshot, annual_goals_achieved, goal_progress, habit_tally,
    monthly_review_completion, reflection_consistency, review_consistency,
    streaks_maintained, task_completion, weekly_review_consistency,
)
from app.core.review_periods import days_in_month, period_bounds, period_start
from app.models.daily_plan import DailyPlan
from app.models.gamification import Streak
from app.models.goal import Goal
from app.models.habit import Habit
from app.models.reflection import Reflection
from app.models.review import AnnualReview, MonthlyReview, QuarterlyReview, WeeklyReview
from app.models.user import User
from app.services import points_service, streak_service
from app.services.family_access import FamilyContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewKindConfig:
    kind: ReviewKind
    model: type
    period_field: str
    list_fields: tuple[str, ...]
    text_fields: tuple[str, ...]

    @property
    def label(self) -> str:
        return f"{self.kind.value.capitalize()} review"

    @property
    def period_column(self):
        return getattr(self.model, self.period_field)

    def period_value(self, start: date):
        return start.year if self.kind == ReviewKind.ANNUAL else start

    def period_start_of(self, review) -> date:
        value = getattr(review, self.period_field)
        return date(value, 1, 1) if self.kind == ReviewKind.ANNUAL else value


REVIEW_KINDS: dict[ReviewKind, ReviewKindConfig] = {
    ReviewKind.WEEKLY: ReviewKindConfig(
        ReviewKind.WEEKLY, WeeklyReview, "week_start_date",
        ("wins", "challenges", "next_week_priorities"),
        ("lessons_learned", "notes"),
    ),
    ReviewKind.MONTHLY: ReviewKindConfig(
        ReviewKind.MONTHLY, MonthlyReview, "month",
        ("highlights", "challenges", "next_month_focus"),
        ("lessons_learned",),
    ),
    ReviewKind.QUARTERLY: ReviewKindConfig(
        ReviewKind.QUARTERLY, QuarterlyReview, "quarter_start",
        ("achievements", "obstacles", "next_quarter_objectives"),
        ("insights",),
    ),
    ReviewKind.ANNUAL: ReviewKindConfig(
        ReviewKind.ANNUAL, AnnualReview, "year",
        ("year_highlights", "year_challenges", "next_year_themes"),
        ("lessons_learned", "word_of_the_year"),
    ),
}


# ─── Lookup ──────────────────────────────────────────────────────

async def list_reviews(
    db: AsyncSession, cfg: ReviewKindConfig, family_id: UUID, user_id: UUID,
) -> list:
    result = await db.execute(
        select(cfg.model)
        .where(cfg.model.family_id == family_id, cfg.model.user_id == user_id)
        .order_by(cfg.period_column.desc()),
    )
    return list(result.scalars().all())


async def current_review(db: AsyncSession, cfg: ReviewKindConfig, ctx: FamilyContext):
    start = period_start(cfg.kind, local_today(ctx.timezone), ctx.week_start_day)
    value = cfg.period_value(start)
    result = await db.execute(
        select(cfg.model).where(
            cfg.model.family_id == ctx.family.id,
            cfg.model.user_id == ctx.user.id,
            cfg.period_column == value,
        ),
    )
    review = result.scalar_one_or_none()
    if review is None:
        review = cfg.model(
            family_id=ctx.family.id, user_id=ctx.user.id, **{cfg.period_field: value},
        )
        db.add(review)
        await db.flush()
    return review


async def get_review(db: AsyncSession, cfg: ReviewKindConfig, family_id: UUID, review_id: UUID):
    review = await db.get(cfg.model, review_id)
    if review is None or review.family_id != family_id:
        raise ResourceNotFoundError(
            cfg.model.__name__, str(review_id),
            f"This {cfg.kind.value} review doesn't exist or has been deleted.",
        )
    return review


# ─── Update ──────────────────────────────────────────────────────

async def update_review(db: AsyncSession, cfg: ReviewKindConfig, review, user: User, data: dict):
    was_completed = review.completed
    for field in cfg.list_fields + cfg.text_fields + ("completed",):
        if field in data and data[field] is not None:
            setattr(review, field, data[field])

    if review.completed and not was_completed:
        review.completed_at = utcnow()
        if cfg.kind == ReviewKind.WEEKLY:
            await points_service.award(
                db, user.id, ActivityType.COMPLETE_WEEKLY_REVIEW,
                {"review_id": str(review.id), "week_start_date": review.week_start_date.isoformat()},
            )
            await streak_service.record(db, user.id, StreakType.WEEKLY_REVIEW, review.week_start_date)
        logger.info(
            f"{cfg.label} completed",
            extra={"user_id": user.id, "family_id": review.family_id},
        )
    await db.flush()
    return review


# ─── Metrics ─────────────────────────────────────────────────────

async def _plan_snapshots(
    db: AsyncSession, user_id: UUID, family_id: UUID, start: date, end: date,
) -> list[PlanSnapshot]:
    result = await db.execute(
        select(DailyPlan)
        .where(
            DailyPlan.user_id == user_id,
            DailyPlan.family_id == family_id,
            DailyPlan.plan_date >= start,
            DailyPlan.plan_date <= end,
        )
        .order_by(DailyPlan.plan_date),
    )
    plans = list(result.scalars().all())
    habit_ids = {hc.habit_id for p in plans for hc in p.habit_completions}
    names = {}
    if habit_ids:
        names = dict((await db.execute(
            select(Habit.id, Habit.name).where(Habit.id.in_(habit_ids)),
        )).all())
    return [
        PlanSnapshot(
            plan_date=p.plan_date,
            tasks_total=len(p.tasks),
            tasks_completed=sum(1 for t in p.tasks if t.completed),
            completed_habit_names=tuple(
                names[hc.habit_id] for hc in p.habit_completions
                if hc.completed and hc.habit_id in names
            ),
        )
        for p in plans
    ]


async def _goal_snapshots(
    db: AsyncSession, user_id: UUID, family_id: UUID, time_scale: TimeScale | None = None,
) -> list[GoalSnapshot]:
    query = select(Goal.status, Goal.progress).where(
        Goal.family_id == family_id,
        Goal.is_draft.is_(False),
        or_(Goal.creator_id == user_id, Goal.visibility == GoalVisibility.FAMILY.value),
    )
    if time_scale is not None:
        query = query.where(Goal.time_scale == time_scale.value)
    result = await db.execute(query)
    return [GoalSnapshot(status=s, progress=p or 0) for s, p in result.all()]


async def _completed_count(
    db: AsyncSession, cfg: ReviewKindConfig, user_id: UUID, family_id: UUID, start, end,
) -> int:
    column = cfg.period_column
    return int(await db.scalar(
        select(func.count(cfg.model.id)).where(
            cfg.model.user_id == user_id,
            cfg.model.family_id == family_id,
            cfg.model.completed.is_(True),
            and_(column >= start, column <= end),
        ),
    ) or 0)


async def _reflection_count(
    db: AsyncSession, user_id: UUID, family_id: UUID, start: date, end: date,
) -> int:
    return int(await db.scalar(
        select(func.count(Reflection.id))
        .join(DailyPlan, DailyPlan.id == Reflection.daily_plan_id)
        .where(
            DailyPlan.user_id == user_id,
            DailyPlan.family_id == family_id,
            DailyPlan.plan_date >= start,
            DailyPlan.plan_date <= end,
        ),
    ) or 0)


async def review_metrics(db: AsyncSession, cfg: ReviewKindConfig, review) -> dict:
    user_id, family_id = review.user_id, review.family_id
    start, end = period_bounds(cfg.kind, cfg.period_start_of(review))

    if cfg.kind == ReviewKind.WEEKLY:
        plans = await _plan_snapshots(db, user_id, family_id, start, end)
        return {
            "task_completion": task_completion(plans),
            "goal_progress": goal_progress(await _goal_snapshots(db, user_id, family_id)),
            "habit_tally": habit_tally(plans),
        }

    if cfg.kind == ReviewKind.MONTHLY:
        plans = await _plan_snapshots(db, user_id, family_id, start, end)
        reflections = await _reflection_count(db, user_id, family_id, start, end)
        return {
            "task_completion": task_completion(plans),
            "goal_progress": goal_progress(await _goal_snapshots(db, user_id, family_id)),
            "reflection_consistency": reflection_consistency(days_in_month(start), reflections),
        }

    if cfg.kind == ReviewKind.QUARTERLY:
        goals = await _goal_snapshots(db, user_id, family_id, TimeScale.QUARTERLY)
        monthly = await _completed_count(
            db, REVIEW_KINDS[ReviewKind.MONTHLY], user_id, family_id, start, end,
        )
        weekly = await _completed_count(
            db, REVIEW_KINDS[ReviewKind.WEEKLY], user_id, family_id, start, end,
        )
        return {
            "goal_completion": goal_progress(goals),
            "monthly_review_completion": monthly_review_completion(monthly),
            "habit_consistency": weekly_review_consistency(weekly),
        }

    goals = await _goal_snapshots(db, user_id, family_id, TimeScale.ANNUAL)
    longest = dict((await db.execute(
        select(Streak.streak_type, Streak.longest_count).where(Streak.user_id == user_id),
    )).all())
    quarterly = await _completed_count(
        db, REVIEW_KINDS[ReviewKind.QUARTERLY], user_id, family_id, start, end,
    )
    monthly = await _completed_count(
        db, REVIEW_KINDS[ReviewKind.MONTHLY], user_id, family_id, start, end,
    )
    weekly = await _completed_count(
        db, REVIEW_KINDS[ReviewKind.WEEKLY], user_id, family_id, start, end,
    )
    return {
        "goals_achieved": annual_goals_achieved(goals),
        "streaks_maintained": streaks_maintained(longest),
        "review_consistency": review_consistency(quarterly, monthly, weekly),
    }


def review_to_dict(cfg: ReviewKindConfig, review) -> dict:
    period = getattr(review, cfg.period_field)
    data = {
        "id": str(review.id),
        "user_id": str(review.user_id),
        "family_id": str(review.family_id),
        cfg.period_field: period if isinstance(period, int) else period.isoformat(),
        "completed": review.completed,
        "completed_at": review.completed_at.isoformat() if review.completed_at else None,
        "created_at": review.created_at.isoformat() if review.created_at else None,
        "updated_at": review.updated_at.isoformat() if review.updated_at else None,
    }
    for field in cfg.list_fields:
        data[field] = getattr(review, field) or []
    for field in cfg.text_fields:
        data[field] = getattr(review, field)
    return data
