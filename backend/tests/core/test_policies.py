"""Authorization Policies - role and visibility predicates.

Tests:
    - Role ladders for goal management, inviting and family administration
    - Goal visibility for personal / shared / family goals
    - Membership changes never apply to the actor's own membership
"""

from uuid import uuid4

import pytest

from app.core.domain_types import GoalVisibility, MembershipRole
from app.core.policies import (
    can_change_membership, can_delete_invitation, can_invite, can_manage_family,
    can_manage_goals, can_modify_goal, can_modify_owned_record, can_view_owned_record,
    goal_visible_to, is_member,
)

CREATOR = uuid4()
ASSIGNEE = uuid4()
OTHER = uuid4()


@pytest.mark.parametrize("role,expected", [
    (None, False),
    (MembershipRole.OBSERVER, False),
    (MembershipRole.CHILD, False),
    (MembershipRole.TEEN, False),
    (MembershipRole.ADULT, True),
    (MembershipRole.ADMIN, True),
])
def test_goal_management_requires_adult_or_admin(role, expected):
    assert can_manage_goals(role) is expected
    assert can_invite(role) is expected


def test_roles_accept_plain_strings():
    assert can_manage_goals("adult")
    assert can_manage_family("admin")
    assert not can_manage_family("adult")


def test_none_role_is_not_a_member():
    assert not is_member(None)
    assert is_member(MembershipRole.OBSERVER)


def test_family_goal_visible_to_every_member():
    assert goal_visible_to(GoalVisibility.FAMILY, CREATOR, [], OTHER, MembershipRole.OBSERVER)


def test_no_goal_visible_to_non_members():
    assert not goal_visible_to(GoalVisibility.FAMILY, CREATOR, [], OTHER, None)


def test_personal_goal_visible_to_creator_only():
    assert goal_visible_to("personal", CREATOR, [ASSIGNEE], CREATOR, "adult")
    assert not goal_visible_to("personal", CREATOR, [ASSIGNEE], ASSIGNEE, "adult")


def test_shared_goal_visible_to_creator_and_assignees():
    assert goal_visible_to("shared", CREATOR, [ASSIGNEE], CREATOR, "child")
    assert goal_visible_to("shared", CREATOR, [ASSIGNEE], ASSIGNEE, "child")
    assert not goal_visible_to("shared", CREATOR, [ASSIGNEE], OTHER, "admin")


def test_modifying_goal_needs_role_and_visibility():
    assert can_modify_goal("family", CREATOR, [], OTHER, "adult")
    assert not can_modify_goal("family", CREATOR, [], OTHER, "teen")
    assert not can_modify_goal("personal", CREATOR, [], OTHER, "admin")


def test_admin_cannot_change_own_membership():
    admin = uuid4()
    assert can_change_membership("admin", admin, OTHER)
    assert not can_change_membership("admin", admin, admin)
    assert not can_change_membership("adult", admin, OTHER)


def test_owned_records_viewable_by_members_modifiable_by_owner():
    assert can_view_owned_record("observer")
    assert not can_view_owned_record(None)
    assert can_modify_owned_record("child", CREATOR, CREATOR)
    assert not can_modify_owned_record("admin", CREATOR, OTHER)


def test_invitation_deletable_by_admin_or_inviter():
    assert can_delete_invitation("admin", CREATOR, OTHER)
    assert can_delete_invitation("adult", CREATOR, CREATOR)
    assert not can_delete_invitation("adult", CREATOR, OTHER)
    assert not can_delete_invitation(None, CREATOR, CREATOR)
