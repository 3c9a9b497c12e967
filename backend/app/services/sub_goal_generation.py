"""Sub-goal Generation - AI breakdown of annual/quarterly goals into draft child goals.

Invariants:
    - Generated children are drafts: is_draft=True, status not_started, progress 0,
      visibility inherited from the parent
    - The creator is always notified: "Sub-goals generated!" or "Sub-goal generation failed"
    - run_sub_goal_generation() owns its session: it runs after the request has returned

Design Decisions:
    - Scheduled through FastAPI BackgroundTasks with the AI client instance resolved by
      the request's dependency, so tests drive it with a fake client
    - Only annual and quarterly goals with a due date qualify for automatic generation
"""

import json
import logging
from datetime import date
from uuid import UUID

from app.core.ai_parsing import normalize_sub_goals, parse_json_object
from app.core.clock import local_today
from app.core.domain_types import GoalStatus, NotificationType, SMART_FIELDS, TimeScale
from app.core.errors import AnthropicAPIError, ErrorContext, RefinementError
from app.infrastructure import database as db_module
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.models.family import Family
from app.models.goal import Goal
from app.services import notification_service
from app.services.goal_prompts import SUB_GOAL_SYSTEM_PROMPT, build_sub_goal_prompt

logger = logging.getLogger(__name__)

AUTO_GENERATE_SCALES = frozenset({TimeScale.ANNUAL.value, TimeScale.QUARTERLY.value})
STARTED_MESSAGE = "Sub-goal generation started. You'll be notified when complete."


def qualifies_for_generation(goal: Goal) -> bool:
    return goal.time_scale in AUTO_GENERATE_SCALES and goal.due_date is not None


async def generate_sub_goals(
    client: ResilientAnthropicClient, goal: Goal, today: date,
) -> dict:
    context = ErrorContext(family_id=str(goal.family_id), resource_id=str(goal.id))
    try:
        text = await client.complete_text(
            system=SUB_GOAL_SYSTEM_PROMPT,
            prompt=build_sub_goal_prompt(goal, today),
            max_tokens=4096,
            context=context,
        )
        data = parse_json_object(text)
    except AnthropicAPIError as e:
        raise RefinementError(e.message, context=context) from e
    except (json.JSONDecodeError, ValueError) as e:
        raise RefinementError(f"Failed to parse AI response: {e}", context=context) from e
    return normalize_sub_goals(data, goal.time_scale, goal.due_date, today)


def build_draft_children(parent: Goal, creator_id: UUID, sub_goals: list[dict]) -> list[Goal]:
    children = []
    for sub_goal in sub_goals:
        smart = sub_goal.get("smart_fields") or {}
        children.append(Goal(
            family_id=parent.family_id,
            creator_id=creator_id,
            parent_id=parent.id,
            title=sub_goal["title"][:255],
            description=sub_goal.get("description"),
            time_scale=sub_goal["time_scale"],
            due_date=sub_goal.get("due_date"),
            is_draft=True,
            status=GoalStatus.NOT_STARTED.value,
            visibility=parent.visibility,
            progress=0,
            assignments=[],
            **{f: smart.get(f) for f in SMART_FIELDS},
        ))
    return children


async def run_sub_goal_generation(
    goal_id: UUID, user_id: UUID, client: ResilientAnthropicClient,
) -> None:
    """Background job: generate, persist and notify."""
    async with db_module.get_db_manager().session() as db:
        goal = await db.get(Goal, goal_id)
        if goal is None:
            logger.warning(f"Sub-goal generation skipped: goal {goal_id} no longer exists")
            return
        family = await db.get(Family, goal.family_id)
        link = f"/families/{goal.family_id}/goals/{goal.id}"
        extra = {"user_id": user_id, "family_id": goal.family_id, "job": "sub_goal_generation"}

        try:
            result = await generate_sub_goals(client, goal, local_today(family.timezone))
        except RefinementError as e:
            logger.error(f"Sub-goal generation failed for goal {goal_id}: {e.reason}", extra=extra)
            await notification_service.notify(
                db, user_id,
                "Sub-goal generation failed",
                f"Could not generate sub-goals for '{goal.title}': {e.reason}",
                link,
                NotificationType.GOAL_UPDATE,
            )
            await db.commit()
            return

        children = build_draft_children(goal, user_id, result["sub_goals"])
        db.add_all(children)
        await notification_service.notify(
            db, user_id,
            "Sub-goals generated!",
            f"{len(children)} sub-goals created for '{goal.title}'. Review and customize them.",
            link,
            NotificationType.GOAL_UPDATE,
        )
        await db.commit()
        logger.info(f"Generated {len(children)} draft sub-goals", extra=extra)
