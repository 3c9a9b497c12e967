"""Reflection Service - reflections attached to daily plans, with completion side effects.

Invariants:
    - A reflection's owner is its daily plan's owner
    - Creating without daily_plan_id attaches to the caller's plan for today (find-or-create)
    - Responses given in an update replace the stored ones
    - An evening reflection turning completed (false -> true): evening_reflection streak
      for the plan date, complete_reflection points, reflection_completed first action

Design Decisions:
    - Listing joins through DailyPlan: reflections carry no family/user columns of their own
"""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import (
    ActivityType, BadgeCategory, FirstAction, ReflectionType, StreakType,
)
from app.core.errors import PermissionDeniedError, ResourceNotFoundError
from app.models.daily_plan import DailyPlan
from app.models.reflection import Reflection, ReflectionResponse
from app.models.user import User
from app.services import badge_service, daily_plan_service, points_service, streak_service
from app.services.family_access import FamilyContext
from app.services.first_actions import record_first_action

logger = logging.getLogger(__name__)

REFLECTION_NOT_FOUND_MESSAGE = "This reflection doesn't exist or has been deleted."
SCALAR_FIELDS = ("reflection_type", "mood", "energy_level", "gratitude_items", "completed")


async def list_reflections(
    db: AsyncSession,
    family_id: UUID,
    user_id: UUID,
    reflection_type: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[tuple[Reflection, DailyPlan]]:
    query = (
        select(Reflection, DailyPlan)
        .join(DailyPlan, DailyPlan.id == Reflection.daily_plan_id)
        .where(DailyPlan.family_id == family_id, DailyPlan.user_id == user_id)
    )
    if reflection_type:
        query = query.where(Reflection.reflection_type == reflection_type)
    if start:
        query = query.where(DailyPlan.plan_date >= start)
    if end:
        query = query.where(DailyPlan.plan_date <= end)
    result = await db.execute(
        query.order_by(DailyPlan.plan_date.desc(), Reflection.created_at.desc()),
    )
    return [(r, p) for r, p in result.all()]


async def get_reflection(db: AsyncSession, reflection_id: UUID) -> tuple[Reflection, DailyPlan]:
    reflection = await db.get(Reflection, reflection_id)
    plan = await db.get(DailyPlan, reflection.daily_plan_id) if reflection else None
    if reflection is None or plan is None:
        raise ResourceNotFoundError("Reflection", str(reflection_id), REFLECTION_NOT_FOUND_MESSAGE)
    return reflection, plan


def _responses(items: list[dict]) -> list[ReflectionResponse]:
    return [
        ReflectionResponse(
            prompt=item["prompt"],
            response=item.get("response") or "",
            position=item.get("position") if item.get("position") is not None else index,
        )
        for index, item in enumerate(items)
    ]


async def _on_completed(db: AsyncSession, reflection: Reflection, plan: DailyPlan, user: User) -> bool:
    if reflection.reflection_type != ReflectionType.EVENING.value:
        return False
    await streak_service.record(db, user.id, StreakType.EVENING_REFLECTION, plan.plan_date)
    await points_service.award(
        db, user.id, ActivityType.COMPLETE_REFLECTION,
        {"reflection_id": str(reflection.id), "daily_plan_id": str(plan.id)},
    )
    return record_first_action(user, FirstAction.REFLECTION_COMPLETED)


async def create_reflection(
    db: AsyncSession, ctx: FamilyContext, data: dict,
) -> tuple[Reflection, DailyPlan, bool]:
    plan_id = data.pop("daily_plan_id", None)
    if plan_id:
        plan = await daily_plan_service.get_plan(db, plan_id)
        if plan.family_id != ctx.family.id:
            raise ResourceNotFoundError(
                "DailyPlan", str(plan_id), daily_plan_service.PLAN_NOT_FOUND_MESSAGE,
            )
        if plan.user_id != ctx.user.id:
            raise PermissionDeniedError()
    else:
        plan = await daily_plan_service.today_plan(db, ctx)

    reflection = Reflection(
        daily_plan_id=plan.id,
        responses=_responses(data.pop("responses", None) or []),
        **{k: v for k, v in data.items() if k in SCALAR_FIELDS and v is not None},
    )
    db.add(reflection)
    await db.flush()

    is_first_action = False
    if reflection.completed:
        is_first_action = await _on_completed(db, reflection, plan, ctx.user)
    await badge_service.check_badges(db, ctx.user.id, BadgeCategory.REFLECTION)
    return reflection, plan, is_first_action


async def update_reflection(
    db: AsyncSession, reflection: Reflection, plan: DailyPlan, user: User, data: dict,
) -> bool:
    was_completed = reflection.completed
    if data.get("responses") is not None:
        reflection.responses = _responses(data.pop("responses"))
    data.pop("responses", None)
    for field, value in data.items():
        if field in SCALAR_FIELDS:
            setattr(reflection, field, value)
    await db.flush()

    is_first_action = False
    if reflection.completed and not was_completed:
        is_first_action = await _on_completed(db, reflection, plan, user)
        await badge_service.check_badges(db, user.id, BadgeCategory.REFLECTION)
    return is_first_action


def reflection_to_dict(reflection: Reflection, plan: DailyPlan) -> dict:
    return {
        "id": str(reflection.id),
        "daily_plan_id": str(plan.id),
        "user_id": str(plan.user_id),
        "date": plan.plan_date.isoformat(),
        "reflection_type": reflection.reflection_type,
        "mood": reflection.mood,
        "energy_level": reflection.energy_level,
        "gratitude_items": reflection.gratitude_items or [],
        "completed": reflection.completed,
        "responses": [
            {"id": str(r.id), "prompt": r.prompt, "response": r.response, "position": r.position}
            for r in sorted(reflection.responses, key=lambda r: r.position)
        ],
        "created_at": reflection.created_at.isoformat() if reflection.created_at else None,
    }
