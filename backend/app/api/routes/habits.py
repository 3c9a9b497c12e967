"""Habit Routes - the caller's active habits within a family."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_family_context
from app.infrastructure.database import get_db
from app.schemas.goal import PositionsUpdate
from app.schemas.planning import HabitCreate, HabitUpdate
from app.services import habit_service
from app.services.family_access import FamilyContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/families/{family_id}/habits", tags=["habits"])


@router.get("")
async def list_habits(
    ctx: FamilyContext = Depends(get_family_context), db: AsyncSession = Depends(get_db),
):
    habits = await habit_service.active_habits(db, ctx.family.id, ctx.user.id)
    return {"habits": [habit_service.habit_to_dict(h) for h in habits]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_habit(
    body: HabitCreate,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    habit = await habit_service.create_habit(
        db, ctx.family.id, ctx.user.id, body.name, body.position,
    )
    await db.commit()
    return {"habit": habit_service.habit_to_dict(habit)}


@router.post("/update_positions")
async def update_habit_positions(
    body: PositionsUpdate,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    habits = await habit_service.update_positions(
        db, ctx.family.id, ctx.user.id, [(item.id, item.position) for item in body.positions],
    )
    await db.commit()
    return {"habits": [habit_service.habit_to_dict(h) for h in habits]}


@router.patch("/{habit_id}")
async def update_habit(
    habit_id: UUID,
    body: HabitUpdate,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    habit = await habit_service.get_owned_habit(db, ctx.family.id, ctx.user.id, habit_id)
    if body.name is not None:
        habit.name = body.name
    if body.position is not None:
        habit.position = body.position
    await db.commit()
    return {"habit": habit_service.habit_to_dict(habit)}


@router.delete("/{habit_id}")
async def delete_habit(
    habit_id: UUID,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the habit disappears from lists but past completions keep it."""
    habit = await habit_service.get_owned_habit(db, ctx.family.id, ctx.user.id, habit_id)
    habit.is_active = False
    await db.commit()
    return {"message": "Habit deleted successfully."}
