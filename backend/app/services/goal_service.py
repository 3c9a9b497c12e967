"""Goal Service - goal writes and their gamification side effects.

Invariants:
    - Assignees must be members of the goal's family (422 otherwise)
    - A parent goal must belong to the same family and cannot be the goal itself
    - create -> create_goal points + goal_created first action + goals badge check
    - status transition into completed (from anything else) -> complete_goal points
    - update_positions only touches goals created by the caller (others -> 404)
    - Deleting a goal detaches its children (parent_id NULL) and drops its assignments

Design Decisions:
    - Sub-goal scheduling is decided here (should_generate) but executed by the route
      through BackgroundTasks, keeping this module free of request plumbing
"""

import logging
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import ActivityType, BadgeCategory, FirstAction, GoalStatus
from app.core.errors import ResourceNotFoundError, ValidationError
from app.models.goal import Goal, GoalAssignment
from app.models.user import User
from app.services import badge_service, points_service
from app.services.family_access import family_member_ids
from app.services.first_actions import record_first_action
from app.services.goal_queries import GOAL_NOT_FOUND_MESSAGE
from app.services.sub_goal_generation import qualifies_for_generation

logger = logging.getLogger(__name__)

GOAL_FIELDS = (
    "title", "description", "specific", "measurable", "achievable", "relevant", "time_bound",
    "time_scale", "status", "visibility", "progress", "due_date", "position", "is_draft",
)
NULLABLE_GOAL_FIELDS = frozenset({
    "description", "specific", "measurable", "achievable", "relevant", "time_bound",
    "due_date", "position",
})


async def _validate_assignees(
    db: AsyncSession, family_id: UUID, assignee_ids: list[UUID],
) -> list[UUID]:
    unique_ids = list(dict.fromkeys(assignee_ids))
    members = set(await family_member_ids(db, family_id))
    if any(uid not in members for uid in unique_ids):
        raise ValidationError("Assignees must be members of this family", field="assignee_ids")
    return unique_ids


async def _validate_parent(
    db: AsyncSession, family_id: UUID, parent_id: UUID | None, goal_id: UUID | None = None,
) -> None:
    if parent_id is None:
        return
    if goal_id is not None and parent_id == goal_id:
        raise ValidationError("A goal cannot be its own parent", field="parent_id")
    parent = await db.get(Goal, parent_id)
    if parent is None or parent.family_id != family_id:
        raise ValidationError("Parent goal must belong to this family", field="parent_id")


async def create_goal(
    db: AsyncSession, family_id: UUID, user: User, data: dict,
) -> tuple[Goal, bool]:
    """Returns (goal, is_first_action)."""
    assignee_ids = await _validate_assignees(db, family_id, data.pop("assignee_ids", None) or [])
    await _validate_parent(db, family_id, data.get("parent_id"))

    goal = Goal(
        family_id=family_id,
        creator_id=user.id,
        parent_id=data.get("parent_id"),
        assignments=[GoalAssignment(user_id=uid) for uid in assignee_ids],
        **{k: v for k, v in data.items() if k in GOAL_FIELDS and v is not None},
    )
    db.add(goal)
    await db.flush()

    await points_service.award(
        db, user.id, ActivityType.CREATE_GOAL, {"goal_id": str(goal.id), "goal_title": goal.title},
    )
    is_first_action = record_first_action(user, FirstAction.GOAL_CREATED)
    await badge_service.check_badges(db, user.id, BadgeCategory.GOALS)
    logger.info(f"Goal {goal.id} created", extra={"user_id": user.id, "family_id": family_id})
    return goal, is_first_action


def should_generate_sub_goals(goal: Goal, requested: bool | None) -> bool:
    return requested is not False and qualifies_for_generation(goal)


async def update_goal(db: AsyncSession, goal: Goal, user: User, data: dict) -> Goal:
    previous_status = goal.status

    if "assignee_ids" in data:
        assignee_ids = await _validate_assignees(db, goal.family_id, data.pop("assignee_ids") or [])
        current = {a.user_id: a for a in goal.assignments}
        for uid, assignment in current.items():
            if uid not in assignee_ids:
                goal.assignments.remove(assignment)
        for uid in assignee_ids:
            if uid not in current:
                goal.assignments.append(GoalAssignment(user_id=uid))

    if "parent_id" in data:
        await _validate_parent(db, goal.family_id, data["parent_id"], goal.id)
        goal.parent_id = data["parent_id"]

    for field, value in data.items():
        if field in GOAL_FIELDS and (value is not None or field in NULLABLE_GOAL_FIELDS):
            setattr(goal, field, value)

    if previous_status != GoalStatus.COMPLETED.value and goal.status == GoalStatus.COMPLETED.value:
        await points_service.award(
            db, user.id, ActivityType.COMPLETE_GOAL,
            {"goal_id": str(goal.id), "goal_title": goal.title},
        )
    await db.flush()
    return goal


async def delete_goal(db: AsyncSession, goal: Goal) -> None:
    await db.execute(
        update(Goal)
        .where(Goal.parent_id == goal.id)
        .values(parent_id=None)
        .execution_options(synchronize_session=False),
    )
    await db.delete(goal)
    await db.flush()
    logger.info(f"Goal {goal.id} deleted", extra={"family_id": goal.family_id})


async def delete_draft_children(db: AsyncSession, goal: Goal) -> int:
    draft_ids = select(Goal.id).where(Goal.parent_id == goal.id, Goal.is_draft.is_(True))
    await db.execute(
        delete(GoalAssignment)
        .where(GoalAssignment.goal_id.in_(draft_ids))
        .execution_options(synchronize_session=False),
    )
    result = await db.execute(
        delete(Goal)
        .where(Goal.parent_id == goal.id, Goal.is_draft.is_(True))
        .execution_options(synchronize_session=False),
    )
    return result.rowcount or 0


async def update_positions(db: AsyncSession, user: User, positions: list[tuple[UUID, int]]) -> None:
    ids = [goal_id for goal_id, _ in positions]
    result = await db.execute(
        select(Goal).where(Goal.id.in_(ids), Goal.creator_id == user.id),
    )
    owned = {g.id: g for g in result.scalars().all()}
    missing = [gid for gid in ids if gid not in owned]
    if missing:
        raise ResourceNotFoundError("Goal", str(missing[0]), GOAL_NOT_FOUND_MESSAGE)
    for goal_id, position in positions:
        owned[goal_id].position = position
    await db.flush()
