"""Daily Plan Service - today's plan, nested updates and plan-driven gamification.

Invariants:
    - At most one plan per (user, family, family-local date); today's plan is find-or-create
    - Nested lists given in an update replace the stored ones; omitted lists are untouched
    - Tasks keep their identity when the payload carries their id (so completion
      transitions are detectable); everything else is recreated
    - Habit completions are upserted per habit (unique (plan, habit))
    - complete_task points: once per task transition into completed
    - complete_daily_plan points: once per plan (completion_awarded_at), when
      completion_stats reaches 100% with total > 0
    - A plan with content records the daily_planning streak for its own date and
      the daily_plan_completed first action

Design Decisions:
    - completion_stats delegates to core.review_metrics.plan_completion so the
      review dashboards and the plan agree on what "complete" means
"""

import logging
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import local_today, utcnow
from app.core.domain_types import ActivityType, BadgeCategory, FirstAction, StreakType
from app.core.errors import ErrorContext, ResourceNotFoundError, ValidationError
from app.core.review_metrics import PlanCompletion, plan_completion
from app.models.daily_plan import DailyPlan, DailyTask, HabitCompletion, TopPriority
from app.models.goal import Goal
from app.models.habit import Habit
from app.models.user import User
from app.services import badge_service, points_service, streak_service
from app.services.family_access import FamilyContext
from app.services.first_actions import record_first_action

logger = logging.getLogger(__name__)

PLAN_NOT_FOUND_MESSAGE = "This daily plan doesn't exist or has been deleted."


def completion_stats(plan: DailyPlan) -> PlanCompletion:
    return plan_completion(
        [(p.title, p.completed) for p in plan.top_priorities],
        [hc.completed for hc in plan.habit_completions],
    )


async def find_plan(
    db: AsyncSession, user_id: UUID, family_id: UUID, plan_date: date,
) -> DailyPlan | None:
    result = await db.execute(
        select(DailyPlan).where(
            DailyPlan.user_id == user_id,
            DailyPlan.family_id == family_id,
            DailyPlan.plan_date == plan_date,
        ),
    )
    return result.scalar_one_or_none()


async def find_or_create_plan(
    db: AsyncSession, user_id: UUID, family_id: UUID, plan_date: date,
) -> DailyPlan:
    plan = await find_plan(db, user_id, family_id, plan_date)
    if plan is not None:
        return plan
    plan = DailyPlan(
        user_id=user_id,
        family_id=family_id,
        plan_date=plan_date,
        tasks=[],
        top_priorities=[],
        habit_completions=[],
    )
    db.add(plan)
    await db.flush()
    return plan


async def today_plan(db: AsyncSession, ctx: FamilyContext) -> DailyPlan:
    return await find_or_create_plan(
        db, ctx.user.id, ctx.family.id, local_today(ctx.timezone),
    )


async def get_plan(db: AsyncSession, plan_id: UUID) -> DailyPlan:
    plan = await db.get(DailyPlan, plan_id)
    if plan is None:
        raise ResourceNotFoundError(
            "DailyPlan", str(plan_id), PLAN_NOT_FOUND_MESSAGE,
            context=ErrorContext(resource_id=str(plan_id)),
        )
    return plan


async def list_plans(
    db: AsyncSession, family_id: UUID, user_id: UUID,
    start: date | None = None, end: date | None = None,
) -> list[DailyPlan]:
    query = select(DailyPlan).where(
        DailyPlan.family_id == family_id, DailyPlan.user_id == user_id,
    )
    if start:
        query = query.where(DailyPlan.plan_date >= start)
    if end:
        query = query.where(DailyPlan.plan_date <= end)
    result = await db.execute(query.order_by(DailyPlan.plan_date.desc()))
    return list(result.scalars().all())


async def yesterday_incomplete_tasks(db: AsyncSession, plan: DailyPlan) -> list[DailyTask]:
    previous = await find_plan(
        db, plan.user_id, plan.family_id, plan.plan_date - timedelta(days=1),
    )
    if previous is None:
        return []
    return [t for t in sorted(previous.tasks, key=lambda t: t.position) if not t.completed]


# ─── Update ──────────────────────────────────────────────────────

async def _validate_goal_links(db: AsyncSession, family_id: UUID, items: list[dict]) -> None:
    goal_ids = {item["goal_id"] for item in items if item.get("goal_id")}
    if not goal_ids:
        return
    result = await db.execute(
        select(Goal.id).where(Goal.id.in_(goal_ids), Goal.family_id == family_id),
    )
    if goal_ids - set(result.scalars().all()):
        raise ValidationError("Linked goals must belong to this family", field="goal_id")


async def _validate_habits(
    db: AsyncSession, plan: DailyPlan, items: list[dict],
) -> None:
    habit_ids = {item["habit_id"] for item in items}
    if not habit_ids:
        return
    result = await db.execute(
        select(Habit.id).where(
            Habit.id.in_(habit_ids),
            Habit.user_id == plan.user_id,
            Habit.family_id == plan.family_id,
        ),
    )
    if habit_ids - set(result.scalars().all()):
        raise ValidationError("Habits must belong to the plan owner", field="habit_id")


def _replace_tasks(plan: DailyPlan, items: list[dict]) -> list[DailyTask]:
    """Returns tasks that became completed in this update."""
    existing = {t.id: t for t in plan.tasks}
    kept: list[DailyTask] = []
    newly_completed: list[DailyTask] = []
    for index, item in enumerate(items):
        task = existing.get(item.get("id")) if item.get("id") else None
        was_completed = bool(task and task.completed)
        if task is None:
            task = DailyTask(title=item["title"])
        task.title = item["title"]
        task.completed = bool(item.get("completed", False))
        task.position = item.get("position") if item.get("position") is not None else index
        task.goal_id = item.get("goal_id")
        kept.append(task)
        if task.completed and not was_completed:
            newly_completed.append(task)
    plan.tasks = kept
    return newly_completed


def _replace_priorities(plan: DailyPlan, items: list[dict]) -> None:
    plan.top_priorities = [
        TopPriority(
            title=item.get("title") or "",
            priority_order=item.get("priority_order") or index + 1,
            completed=bool(item.get("completed", False)),
            goal_id=item.get("goal_id"),
        )
        for index, item in enumerate(items)
    ]


def _upsert_habit_completions(plan: DailyPlan, items: list[dict]) -> None:
    existing = {hc.habit_id: hc for hc in plan.habit_completions}
    wanted = {item["habit_id"]: bool(item.get("completed", False)) for item in items}
    for habit_id, completion in existing.items():
        if habit_id not in wanted:
            plan.habit_completions.remove(completion)
    for habit_id, completed in wanted.items():
        if habit_id in existing:
            existing[habit_id].completed = completed
        else:
            plan.habit_completions.append(HabitCompletion(habit_id=habit_id, completed=completed))


async def update_plan(db: AsyncSession, plan: DailyPlan, user: User, data: dict) -> dict:
    """Apply an update; returns {"is_first_action": bool}."""
    for field in ("intention", "shutdown_shipped", "shutdown_blocked"):
        if field in data:
            setattr(plan, field, data[field])

    newly_completed: list[DailyTask] = []
    if data.get("tasks") is not None:
        await _validate_goal_links(db, plan.family_id, data["tasks"])
        newly_completed = _replace_tasks(plan, data["tasks"])
    if data.get("top_priorities") is not None:
        await _validate_goal_links(db, plan.family_id, data["top_priorities"])
        _replace_priorities(plan, data["top_priorities"])
    if data.get("habit_completions") is not None:
        await _validate_habits(db, plan, data["habit_completions"])
        _upsert_habit_completions(plan, data["habit_completions"])
    await db.flush()

    for task in newly_completed:
        await points_service.award(
            db, user.id, ActivityType.COMPLETE_TASK,
            {"task_id": str(task.id), "task_title": task.title, "daily_plan_id": str(plan.id)},
        )

    is_first_action = False
    if plan.has_content:
        await streak_service.record(db, user.id, StreakType.DAILY_PLANNING, plan.plan_date)
        is_first_action = record_first_action(user, FirstAction.DAILY_PLAN_COMPLETED)

    stats = completion_stats(plan)
    if stats.total > 0 and stats.percentage == 100 and plan.completion_awarded_at is None:
        plan.completion_awarded_at = utcnow()
        await points_service.award(
            db, user.id, ActivityType.COMPLETE_DAILY_PLAN,
            {"daily_plan_id": str(plan.id), "date": plan.plan_date.isoformat()},
        )

    await badge_service.check_badges(db, user.id, BadgeCategory.PLANNING)
    return {"is_first_action": is_first_action}


# ─── Serialization ───────────────────────────────────────────────

def task_to_dict(task: DailyTask) -> dict:
    return {
        "id": str(task.id),
        "title": task.title,
        "completed": task.completed,
        "position": task.position,
        "goal_id": str(task.goal_id) if task.goal_id else None,
    }


def plan_to_dict(plan: DailyPlan, yesterday: list[DailyTask] | None = None) -> dict:
    data = {
        "id": str(plan.id),
        "user_id": str(plan.user_id),
        "family_id": str(plan.family_id),
        "date": plan.plan_date.isoformat(),
        "intention": plan.intention,
        "shutdown_shipped": plan.shutdown_shipped,
        "shutdown_blocked": plan.shutdown_blocked,
        "tasks": [task_to_dict(t) for t in sorted(plan.tasks, key=lambda t: t.position)],
        "top_priorities": [
            {
                "id": str(p.id),
                "title": p.title,
                "priority_order": p.priority_order,
                "completed": p.completed,
                "goal_id": str(p.goal_id) if p.goal_id else None,
            }
            for p in sorted(plan.top_priorities, key=lambda p: p.priority_order)
        ],
        "habit_completions": [
            {"id": str(hc.id), "habit_id": str(hc.habit_id), "completed": hc.completed}
            for hc in plan.habit_completions
        ],
        "completion_stats": completion_stats(plan).to_dict(),
        "created_at": plan.created_at.isoformat() if plan.created_at else None,
        "updated_at": plan.updated_at.isoformat() if plan.updated_at else None,
    }
    if yesterday is not None:
        data["yesterday_incomplete_tasks"] = [task_to_dict(t) for t in yesterday]
    return data
