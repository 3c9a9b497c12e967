"""Reflection Routes - reflections on daily plans, filterable by type, owner and date range.

Invariants:
    - Any member can read; update/delete are owner-only (403)
    - create attaches to the given daily_plan_id (which the caller must own) or to today's plan
"""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, get_family_context, require_owner
from app.core.domain_types import ReflectionType
from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.planning import ReflectionCreate, ReflectionUpdate
from app.services import reflection_service
from app.services.family_access import FamilyContext, require_member

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["reflections"])


@router.get("/families/{family_id}/reflections")
async def list_reflections(
    reflection_type: ReflectionType | None = Query(None, alias="type"),
    user_id: UUID | None = Query(None),
    start: date | None = Query(None, alias="from"),
    end: date | None = Query(None, alias="to"),
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    rows = await reflection_service.list_reflections(
        db, ctx.family.id, user_id or ctx.user.id,
        reflection_type.value if reflection_type else None, start, end,
    )
    return {"reflections": [reflection_service.reflection_to_dict(r, p) for r, p in rows]}


@router.post("/families/{family_id}/reflections", status_code=status.HTTP_201_CREATED)
async def create_reflection(
    body: ReflectionCreate,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    reflection, plan, is_first_action = await reflection_service.create_reflection(
        db, ctx, body.model_dump(),
    )
    await db.commit()
    return {
        "reflection": reflection_service.reflection_to_dict(reflection, plan),
        "is_first_action": is_first_action,
    }


@router.get("/reflections/{reflection_id}")
async def get_reflection(
    reflection_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reflection, plan = await reflection_service.get_reflection(db, reflection_id)
    await require_member(db, plan.family_id, user)
    return {"reflection": reflection_service.reflection_to_dict(reflection, plan)}


@router.patch("/reflections/{reflection_id}")
async def update_reflection(
    reflection_id: UUID,
    body: ReflectionUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reflection, plan = await reflection_service.get_reflection(db, reflection_id)
    ctx = await require_member(db, plan.family_id, user)
    require_owner(ctx, plan.user_id)
    data = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    is_first_action = await reflection_service.update_reflection(db, reflection, plan, user, data)
    await db.commit()
    return {
        "reflection": reflection_service.reflection_to_dict(reflection, plan),
        "is_first_action": is_first_action,
    }


@router.delete("/reflections/{reflection_id}")
async def delete_reflection(
    reflection_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reflection, plan = await reflection_service.get_reflection(db, reflection_id)
    ctx = await require_member(db, plan.family_id, user)
    require_owner(ctx, plan.user_id)
    await db.delete(reflection)
    await db.commit()
    return {"message": "Reflection deleted successfully."}
