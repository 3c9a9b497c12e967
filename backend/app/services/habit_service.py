"""Habit Service - a member's active habits within a family, soft-deleted and reorderable."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ResourceNotFoundError
from app.models.habit import Habit

logger = logging.getLogger(__name__)

HABIT_NOT_FOUND_MESSAGE = "This habit doesn't exist or has been deleted."


async def active_habits(db: AsyncSession, family_id: UUID, user_id: UUID) -> list[Habit]:
    result = await db.execute(
        select(Habit)
        .where(Habit.family_id == family_id, Habit.user_id == user_id, Habit.is_active.is_(True))
        .order_by(Habit.position, Habit.created_at),
    )
    return list(result.scalars().all())


async def get_owned_habit(
    db: AsyncSession, family_id: UUID, user_id: UUID, habit_id: UUID,
) -> Habit:
    habit = await db.get(Habit, habit_id)
    if (
        habit is None
        or not habit.is_active
        or habit.family_id != family_id
        or habit.user_id != user_id
    ):
        raise ResourceNotFoundError("Habit", str(habit_id), HABIT_NOT_FOUND_MESSAGE)
    return habit


async def create_habit(
    db: AsyncSession, family_id: UUID, user_id: UUID, name: str, position: int | None = None,
) -> Habit:
    if position is None:
        current_max = await db.scalar(
            select(func.max(Habit.position)).where(
                Habit.family_id == family_id, Habit.user_id == user_id, Habit.is_active.is_(True),
            ),
        )
        position = 0 if current_max is None else current_max + 1
    habit = Habit(family_id=family_id, user_id=user_id, name=name.strip(), position=position)
    db.add(habit)
    await db.flush()
    return habit


async def update_positions(
    db: AsyncSession, family_id: UUID, user_id: UUID, positions: list[tuple[UUID, int]],
) -> list[Habit]:
    habits = {h.id: h for h in await active_habits(db, family_id, user_id)}
    for habit_id, position in positions:
        if habit_id not in habits:
            raise ResourceNotFoundError("Habit", str(habit_id), HABIT_NOT_FOUND_MESSAGE)
        habits[habit_id].position = position
    await db.flush()
    return sorted(habits.values(), key=lambda h: h.position)


def habit_to_dict(habit: Habit) -> dict:
    return {
        "id": str(habit.id),
        "name": habit.name,
        "position": habit.position,
        "is_active": habit.is_active,
        "created_at": habit.created_at.isoformat() if habit.created_at else None,
    }
