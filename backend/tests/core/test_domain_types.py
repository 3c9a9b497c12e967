"""Domain Types - verifies enum members and their persisted string values.

Tests:
    - Roles are declared lowest to highest privilege
    - Enums compare equal to their wire strings
    - Streak types match the three tracked habits of the app
"""

from app.core.domain_types import (
    ActivityType, GoalVisibility, MembershipRole, ReflectionType, ReviewKind,
    SMART_FIELDS, StreakType, TimeScale,
)


def test_membership_roles_in_privilege_order():
    assert [r.value for r in MembershipRole] == ["observer", "child", "teen", "adult", "admin"]


def test_enums_compare_to_wire_strings():
    assert TimeScale.ANNUAL == "annual"
    assert GoalVisibility("shared") is GoalVisibility.SHARED
    assert ReflectionType.EVENING.value == "evening"


def test_streak_types_have_three_members():
    assert set(StreakType) == {
        StreakType.DAILY_PLANNING,
        StreakType.EVENING_REFLECTION,
        StreakType.WEEKLY_REVIEW,
    }


def test_review_kinds_cover_every_period():
    assert [k.value for k in ReviewKind] == ["weekly", "monthly", "quarterly", "annual"]


def test_smart_fields_order():
    assert SMART_FIELDS == ("specific", "measurable", "achievable", "relevant", "time_bound")


def test_activity_types_include_badge_and_milestone_bonuses():
    assert ActivityType("earn_badge") is ActivityType.EARN_BADGE
    assert ActivityType("streak_milestone") is ActivityType.STREAK_MILESTONE
