"""Goal Routes - visibility-scoped goal CRUD, reordering, AI refinement and sub-goal generation.

Invariants:
    - Listing requires membership and applies the visibility clause plus filters
    - A goal that is missing, outside the caller's families, or invisible -> the same 404
    - create/update/destroy/regenerate_sub_goals need adult or admin AND visibility
    - update_positions reorders only the caller's own goals and checks the caller's role
      in every family those goals belong to
    - Annual/quarterly goals with a due date get draft sub-goals generated in the
      background unless generate_sub_goals is false

Design Decisions:
    - Background work goes through BackgroundTasks after the commit; the job opens its
      own session, so nothing request-scoped crosses the response boundary
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, get_family_context, require_goal_manager
from app.core import policies
from app.core.errors import PermissionDeniedError, ResourceNotFoundError
from app.infrastructure.anthropic_client import ResilientAnthropicClient, get_ai_client
from app.infrastructure.database import get_db
from app.models.goal import Goal
from app.models.user import User
from app.schemas.goal import GoalCreate, GoalUpdate, PositionsUpdate
from app.services import goal_service
from app.services.family_access import FamilyContext, get_family_or_404, get_membership
from app.services.goal_queries import (
    GOAL_NOT_FOUND_MESSAGE, GoalFilters, get_visible_goal, list_visible_goals, serialize_goals,
)
from app.services.goal_refinement import refine_goal
from app.services.sub_goal_generation import STARTED_MESSAGE, run_sub_goal_generation

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["goals"])


async def _goal_context(db: AsyncSession, goal_id: UUID, user: User) -> tuple[Goal, FamilyContext]:
    """Resolve a goal the caller may see, together with their family context."""
    goal = await db.get(Goal, goal_id)
    membership = await get_membership(db, goal.family_id, user.id) if goal else None
    if goal is None or membership is None:
        raise ResourceNotFoundError("Goal", str(goal_id), GOAL_NOT_FOUND_MESSAGE)
    ctx = FamilyContext(
        family=await get_family_or_404(db, goal.family_id), membership=membership, user=user,
    )
    return await get_visible_goal(db, goal_id, user.id, ctx.role), ctx


async def _serialize(db: AsyncSession, goal: Goal) -> dict:
    return (await serialize_goals(db, [goal]))[0]


# ─── Family-scoped ───────────────────────────────────────────────

@router.get("/families/{family_id}/goals")
async def list_goals(
    time_scale: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
    visibility: str | None = Query(None),
    assignee_id: UUID | None = Query(None),
    parent_id: UUID | None = Query(None),
    include_drafts: bool = Query(False),
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    filters = GoalFilters(
        time_scale=time_scale,
        status=status_filter,
        visibility=visibility,
        assignee_id=assignee_id,
        parent_id=parent_id,
        include_drafts=include_drafts,
    )
    goals = await list_visible_goals(db, ctx.family.id, ctx.user.id, filters)
    return {"goals": await serialize_goals(db, goals)}


@router.post("/families/{family_id}/goals", status_code=status.HTTP_201_CREATED)
async def create_goal(
    body: GoalCreate,
    background_tasks: BackgroundTasks,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
    client: ResilientAnthropicClient = Depends(get_ai_client),
):
    require_goal_manager(ctx)
    data = body.model_dump(exclude={"generate_sub_goals"})
    goal, is_first_action = await goal_service.create_goal(db, ctx.family.id, ctx.user, data)
    await db.commit()

    generating = goal_service.should_generate_sub_goals(goal, body.generate_sub_goals)
    if generating:
        background_tasks.add_task(run_sub_goal_generation, goal.id, ctx.user.id, client)

    response = {
        "goal": await _serialize(db, goal),
        "is_first_action": is_first_action,
    }
    if generating:
        response["sub_goals_generating"] = True
    return response


# ─── Goal-scoped ─────────────────────────────────────────────────

@router.post("/goals/update_positions")
async def update_goal_positions(
    body: PositionsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Reorder the caller's own goals; any id they did not create -> 404.

    The caller must be able to manage goals in every family the listed goals belong to.
    """
    ids = [item.id for item in body.positions]
    goals = (await db.execute(select(Goal).where(Goal.id.in_(ids)))).scalars().all()
    found = {g.id for g in goals}
    missing = next((gid for gid in ids if gid not in found), None)
    if missing is not None:
        raise ResourceNotFoundError("Goal", str(missing), GOAL_NOT_FOUND_MESSAGE)
    families = {g.family_id: g.id for g in goals}
    for family_id, goal_id in families.items():
        membership = await get_membership(db, family_id, user.id)
        if membership is None:
            raise ResourceNotFoundError("Goal", str(goal_id), GOAL_NOT_FOUND_MESSAGE)
        if not policies.can_manage_goals(membership.role):
            raise PermissionDeniedError()
    await goal_service.update_positions(
        db, user, [(item.id, item.position) for item in body.positions],
    )
    await db.commit()
    return {"message": "Goal positions updated successfully."}


@router.get("/goals/{goal_id}")
async def get_goal(
    goal_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goal, ctx = await _goal_context(db, goal_id, user)
    return {"goal": await _serialize(db, goal)}


@router.patch("/goals/{goal_id}")
async def update_goal(
    goal_id: UUID,
    body: GoalUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goal, ctx = await _goal_context(db, goal_id, user)
    require_goal_manager(ctx)
    await goal_service.update_goal(db, goal, user, body.model_dump(exclude_unset=True))
    await db.commit()
    return {"goal": await _serialize(db, goal)}


@router.delete("/goals/{goal_id}")
async def delete_goal(
    goal_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goal, ctx = await _goal_context(db, goal_id, user)
    require_goal_manager(ctx)
    await goal_service.delete_goal(db, goal)
    await db.commit()
    return {"message": "Goal deleted successfully."}


@router.post("/goals/{goal_id}/refine")
async def refine(
    goal_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: ResilientAnthropicClient = Depends(get_ai_client),
):
    """SMART refinement suggestions from the AI assistant (503 when it is unavailable)."""
    goal, ctx = await _goal_context(db, goal_id, user)
    refinement = await refine_goal(client, goal)
    return {"goal_id": str(goal.id), "refinement": refinement}


@router.post("/goals/{goal_id}/regenerate_sub_goals")
async def regenerate_sub_goals(
    goal_id: UUID,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: ResilientAnthropicClient = Depends(get_ai_client),
):
    goal, ctx = await _goal_context(db, goal_id, user)
    require_goal_manager(ctx)
    removed = await goal_service.delete_draft_children(db, goal)
    await db.commit()
    background_tasks.add_task(run_sub_goal_generation, goal.id, user.id, client)
    logger.info(
        f"Regenerating sub-goals for goal {goal.id} ({removed} drafts removed)",
        extra={"user_id": user.id, "family_id": goal.family_id},
    )
    return {
        "message": STARTED_MESSAGE,
        "sub_goals_generating": True,
        "goal": await _serialize(db, goal),
    }
