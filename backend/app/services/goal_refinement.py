"""Goal Refinement - asks the model for SMART suggestions on an existing goal."""

import json
import logging

from app.core.ai_parsing import normalize_refinement, parse_json_object
from app.core.errors import AnthropicAPIError, ErrorContext, RefinementError
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.models.goal import Goal
from app.services.goal_prompts import REFINEMENT_SYSTEM_PROMPT, build_refinement_prompt

logger = logging.getLogger(__name__)


async def refine_goal(client: ResilientAnthropicClient, goal: Goal) -> dict:
    context = ErrorContext(family_id=str(goal.family_id), resource_id=str(goal.id))
    try:
        text = await client.complete_text(
            system=REFINEMENT_SYSTEM_PROMPT,
            prompt=build_refinement_prompt(goal),
            context=context,
        )
        return normalize_refinement(parse_json_object(text))
    except AnthropicAPIError as e:
        logger.error(f"Goal refinement failed: {e.message}", extra={"error_code": e.code})
        raise RefinementError(e.message, context=context) from e
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"Goal refinement returned unparseable output: {e}")
        raise RefinementError(f"Failed to parse AI response: {e}", context=context) from e
