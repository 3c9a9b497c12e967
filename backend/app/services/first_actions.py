"""First Actions - records the first time a user reaches each onboarding milestone."""

import logging

from app.core.clock import utcnow
from app.core.domain_types import FirstAction
from app.models.user import User

logger = logging.getLogger(__name__)

FEATURE_FEEDBACK_PREFIX = "feature_feedback_"


def _stamp_once(user: User, key: str) -> bool:
    actions = dict(user.first_actions or {})
    if key in actions:
        return False
    actions[key] = utcnow().isoformat()
    user.first_actions = actions
    logger.info(f"First action {key}", extra={"user_id": user.id})
    return True


def record_first_action(user: User, action: FirstAction) -> bool:
    """Stamp the action once. Returns True only the first time.

    The JSON column is reassigned (not mutated in place) so SQLAlchemy sees the change.
    """
    return _stamp_once(user, action.value)


def record_feature_feedback(user: User, feature: str) -> bool:
    """Remember that the user already answered the quick prompt for this feature."""
    return _stamp_once(user, f"{FEATURE_FEEDBACK_PREFIX}{feature}")
