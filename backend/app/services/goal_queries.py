"""Goal Queries - visibility-scoped goal reads, ordering and child roll-ups.

Invariants:
    - visible_to_clause() is the SQL mirror of core.policies.goal_visible_to:
      family OR (personal AND creator) OR (shared AND (creator OR assignee))
    - Ordering: positioned goals first by position asc, then the rest by created_at desc
    - Drafts are excluded unless include_drafts is set
    - children_count ignores abandoned and draft children; draft_children_count counts drafts

Design Decisions:
    - Child roll-ups fetched in one query per page of goals, not per goal
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import and_, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import GoalStatus, GoalVisibility
from app.core.errors import ResourceNotFoundError
from app.core.policies import goal_visible_to
from app.core.review_metrics import ChildProgress, aggregated_progress
from app.models.goal import Goal, GoalAssignment
from app.models.user import User

GOAL_NOT_FOUND_MESSAGE = "This goal doesn't exist or has been deleted."


@dataclass
class GoalFilters:
    time_scale: str | None = None
    status: str | None = None
    visibility: str | None = None
    assignee_id: UUID | None = None
    parent_id: UUID | None = None
    include_drafts: bool = False


def visible_to_clause(user_id: UUID):
    assigned = exists().where(
        GoalAssignment.goal_id == Goal.id, GoalAssignment.user_id == user_id,
    )
    return or_(
        Goal.visibility == GoalVisibility.FAMILY.value,
        and_(Goal.visibility == GoalVisibility.PERSONAL.value, Goal.creator_id == user_id),
        and_(
            Goal.visibility == GoalVisibility.SHARED.value,
            or_(Goal.creator_id == user_id, assigned),
        ),
    )


def ordered(query):
    return query.order_by(Goal.position.is_(None), Goal.position.asc(), Goal.created_at.desc())


async def list_visible_goals(
    db: AsyncSession, family_id: UUID, user_id: UUID, filters: GoalFilters,
) -> list[Goal]:
    query = select(Goal).where(Goal.family_id == family_id, visible_to_clause(user_id))
    if not filters.include_drafts:
        query = query.where(Goal.is_draft.is_(False))
    if filters.time_scale:
        query = query.where(Goal.time_scale == filters.time_scale)
    if filters.status:
        query = query.where(Goal.status == filters.status)
    if filters.visibility:
        query = query.where(Goal.visibility == filters.visibility)
    if filters.parent_id:
        query = query.where(Goal.parent_id == filters.parent_id)
    if filters.assignee_id:
        query = query.where(exists().where(
            GoalAssignment.goal_id == Goal.id, GoalAssignment.user_id == filters.assignee_id,
        ))
    result = await db.execute(ordered(query))
    return list(result.scalars().all())


async def get_visible_goal(db: AsyncSession, goal_id: UUID, user_id: UUID, role) -> Goal:
    """Load a goal the caller may see; anything else is the same 404."""
    goal = await db.get(Goal, goal_id)
    if goal is None or not goal_visible_to(
        goal.visibility, goal.creator_id, goal.assignee_ids, user_id, role,
    ):
        raise ResourceNotFoundError("Goal", str(goal_id), GOAL_NOT_FOUND_MESSAGE)
    return goal


async def child_rollups(db: AsyncSession, goals: list[Goal]) -> dict[UUID, dict]:
    ids = [g.id for g in goals]
    children: dict[UUID, list[ChildProgress]] = {gid: [] for gid in ids}
    if ids:
        result = await db.execute(
            select(Goal.parent_id, Goal.progress, Goal.status, Goal.is_draft)
            .where(Goal.parent_id.in_(ids)),
        )
        for parent_id, progress, status, is_draft in result.all():
            children[parent_id].append(ChildProgress(progress or 0, status, bool(is_draft)))

    rollups = {}
    for goal in goals:
        kids = children.get(goal.id, [])
        non_draft = [c for c in kids if not c.is_draft]
        rollups[goal.id] = {
            "children_count": sum(
                1 for c in non_draft if c.status != GoalStatus.ABANDONED.value
            ),
            "draft_children_count": sum(1 for c in kids if c.is_draft),
            "aggregated_progress": aggregated_progress(goal.progress or 0, kids),
        }
    return rollups


async def users_by_id(db: AsyncSession, user_ids: set[UUID]) -> dict[UUID, User]:
    if not user_ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(user_ids)))
    return {u.id: u for u in result.scalars().all()}


def goal_to_dict(goal: Goal, rollup: dict | None = None, users: dict | None = None) -> dict:
    users = users or {}
    data = {
        "id": str(goal.id),
        "family_id": str(goal.family_id),
        "creator_id": str(goal.creator_id),
        "parent_id": str(goal.parent_id) if goal.parent_id else None,
        "title": goal.title,
        "description": goal.description,
        "specific": goal.specific,
        "measurable": goal.measurable,
        "achievable": goal.achievable,
        "relevant": goal.relevant,
        "time_bound": goal.time_bound,
        "time_scale": goal.time_scale,
        "status": goal.status,
        "visibility": goal.visibility,
        "progress": goal.progress,
        "due_date": goal.due_date.isoformat() if goal.due_date else None,
        "is_draft": goal.is_draft,
        "position": goal.position,
        "assignees": [
            {
                "id": str(uid),
                "name": users[uid].name if uid in users else None,
            }
            for uid in goal.assignee_ids
        ],
        "created_at": goal.created_at.isoformat() if goal.created_at else None,
        "updated_at": goal.updated_at.isoformat() if goal.updated_at else None,
    }
    if rollup is not None:
        data.update(rollup)
    return data


async def serialize_goals(db: AsyncSession, goals: list[Goal]) -> list[dict]:
    rollups = await child_rollups(db, goals)
    users = await users_by_id(db, {uid for g in goals for uid in g.assignee_ids})
    return [goal_to_dict(g, rollups[g.id], users) for g in goals]
