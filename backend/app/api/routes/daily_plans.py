"""Daily Plan Routes - list, today's plan, show and owner-only nested updates.

Invariants:
    - Any family member can read any member's plans; only the owner can update (403)
    - today is find-or-create for the family-local date
    - Responses carry completion_stats and yesterday_incomplete_tasks
"""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, get_family_context, require_owner
from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.planning import DailyPlanUpdate
from app.services import daily_plan_service
from app.services.family_access import FamilyContext, require_member

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["daily_plans"])


async def _plan_response(db: AsyncSession, plan) -> dict:
    yesterday = await daily_plan_service.yesterday_incomplete_tasks(db, plan)
    return daily_plan_service.plan_to_dict(plan, yesterday)


@router.get("/families/{family_id}/daily_plans")
async def list_daily_plans(
    user_id: UUID | None = Query(None),
    start: date | None = Query(None, alias="from"),
    end: date | None = Query(None, alias="to"),
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    """The caller's plans newest first; pass user_id to view another member's."""
    owner_id = user_id or ctx.user.id
    plans = await daily_plan_service.list_plans(db, ctx.family.id, owner_id, start, end)
    return {"daily_plans": [daily_plan_service.plan_to_dict(p) for p in plans]}


@router.get("/families/{family_id}/daily_plans/today")
async def today(
    ctx: FamilyContext = Depends(get_family_context), db: AsyncSession = Depends(get_db),
):
    plan = await daily_plan_service.today_plan(db, ctx)
    await db.commit()
    return {"daily_plan": await _plan_response(db, plan)}


@router.get("/daily_plans/{plan_id}")
async def get_daily_plan(
    plan_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    plan = await daily_plan_service.get_plan(db, plan_id)
    await require_member(db, plan.family_id, user)
    return {"daily_plan": await _plan_response(db, plan)}


@router.patch("/daily_plans/{plan_id}")
async def update_daily_plan(
    plan_id: UUID,
    body: DailyPlanUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    plan = await daily_plan_service.get_plan(db, plan_id)
    ctx = await require_member(db, plan.family_id, user)
    require_owner(ctx, plan.user_id)
    result = await daily_plan_service.update_plan(
        db, plan, user, body.model_dump(exclude_unset=True),
    )
    await db.commit()
    return {
        "daily_plan": await _plan_response(db, plan),
        "is_first_action": result["is_first_action"],
    }
