"""Authorization Policies - pure role and visibility predicates for family-scoped access.

Invariants:
    - No IO: every predicate takes plain values (role, ids, visibility)
    - role=None means "not a member" and fails every check
    - Goal visibility: personal -> creator only; shared -> creator or assignee; family -> any member
    - Mutating a goal needs BOTH a managing role AND visibility

Design Decisions:
    - Predicates instead of policy classes: routes compose them, tests call them directly
    - The SQL form of goal visibility lives in services/goal_queries.py and must mirror
      goal_visible_to() exactly
"""

from uuid import UUID
from collections.abc import Iterable

from app.core.domain_types import GoalVisibility, MembershipRole

GOAL_MANAGER_ROLES = frozenset({MembershipRole.ADULT, MembershipRole.ADMIN})
INVITER_ROLES = frozenset({MembershipRole.ADULT, MembershipRole.ADMIN})


def _as_role(role: MembershipRole | str | None) -> MembershipRole | None:
    if role is None:
        return None
    return MembershipRole(role)


def is_member(role: MembershipRole | str | None) -> bool:
    return _as_role(role) is not None


def can_manage_goals(role: MembershipRole | str | None) -> bool:
    return _as_role(role) in GOAL_MANAGER_ROLES


def can_invite(role: MembershipRole | str | None) -> bool:
    return _as_role(role) in INVITER_ROLES


def can_manage_family(role: MembershipRole | str | None) -> bool:
    return _as_role(role) == MembershipRole.ADMIN


# ─── Goals ───────────────────────────────────────────────────────

def goal_visible_to(
    visibility: GoalVisibility | str,
    creator_id: UUID,
    assignee_ids: Iterable[UUID],
    user_id: UUID,
    role: MembershipRole | str | None,
) -> bool:
    """Whether a family member may see a goal."""
    if not is_member(role):
        return False
    visibility = GoalVisibility(visibility)
    if visibility == GoalVisibility.FAMILY:
        return True
    if creator_id == user_id:
        return True
    if visibility == GoalVisibility.SHARED:
        return user_id in set(assignee_ids)
    return False


def can_modify_goal(
    visibility: GoalVisibility | str,
    creator_id: UUID,
    assignee_ids: Iterable[UUID],
    user_id: UUID,
    role: MembershipRole | str | None,
) -> bool:
    """update / destroy / regenerate_sub_goals."""
    return can_manage_goals(role) and goal_visible_to(
        visibility, creator_id, assignee_ids, user_id, role,
    )


# ─── Memberships ─────────────────────────────────────────────────

def can_change_membership(
    actor_role: MembershipRole | str | None, actor_user_id: UUID, target_user_id: UUID,
) -> bool:
    """Admins manage other members; nobody edits or removes their own membership."""
    return can_manage_family(actor_role) and actor_user_id != target_user_id


# ─── Owned records (plans, reflections, reviews, habits) ─────────

def can_view_owned_record(role: MembershipRole | str | None) -> bool:
    return is_member(role)


def can_modify_owned_record(
    role: MembershipRole | str | None, owner_id: UUID, user_id: UUID,
) -> bool:
    return is_member(role) and owner_id == user_id


# ─── Invitations ─────────────────────────────────────────────────

def can_delete_invitation(
    role: MembershipRole | str | None, inviter_id: UUID, user_id: UUID,
) -> bool:
    return can_manage_family(role) or (is_member(role) and inviter_id == user_id)
