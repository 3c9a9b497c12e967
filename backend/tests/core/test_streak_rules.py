"""Streak Rules - pure transitions for daily and weekly streaks."""

from datetime import date

from app.core.domain_types import StreakType
from app.core.streak_rules import (
    StreakState, expected_gap_days, is_at_risk, is_broken, milestone_reached,
    next_milestone, record_activity, reset_if_broken,
)

DAILY = StreakType.DAILY_PLANNING
WEEKLY = StreakType.WEEKLY_REVIEW


def test_expected_gap_is_seven_days_for_weekly_review_only():
    assert expected_gap_days(WEEKLY) == 7
    assert expected_gap_days(DAILY) == 1
    assert expected_gap_days("evening_reflection") == 1


def test_first_activity_starts_streak_at_one():
    state, recorded = record_activity(StreakState(DAILY), date(2026, 3, 1))
    assert recorded
    assert state.current_count == 1
    assert state.longest_count == 1
    assert state.last_activity_date == date(2026, 3, 1)


def test_consecutive_days_extend_streak():
    state = StreakState(DAILY, current_count=3, longest_count=3, last_activity_date=date(2026, 3, 1))
    state, recorded = record_activity(state, date(2026, 3, 2))
    assert recorded
    assert state.current_count == 4
    assert state.longest_count == 4


def test_same_day_activity_is_not_recorded_twice():
    state = StreakState(DAILY, current_count=2, longest_count=5, last_activity_date=date(2026, 3, 2))
    new_state, recorded = record_activity(state, date(2026, 3, 2))
    assert not recorded
    assert new_state == state


def test_gap_restarts_count_but_keeps_longest():
    state = StreakState(DAILY, current_count=6, longest_count=9, last_activity_date=date(2026, 3, 1))
    state, recorded = record_activity(state, date(2026, 3, 4))
    assert recorded
    assert state.current_count == 1
    assert state.longest_count == 9


def test_weekly_streak_ignores_second_review_inside_same_week():
    state = StreakState(WEEKLY, current_count=1, longest_count=1, last_activity_date=date(2026, 3, 2))
    _, recorded = record_activity(state, date(2026, 3, 6))
    assert not recorded


def test_weekly_streak_continues_after_seven_days():
    state = StreakState(WEEKLY, current_count=1, longest_count=1, last_activity_date=date(2026, 3, 2))
    state, recorded = record_activity(state, date(2026, 3, 9))
    assert recorded
    assert state.current_count == 2


def test_broken_detection_and_reset():
    state = StreakState(DAILY, current_count=4, longest_count=4, last_activity_date=date(2026, 3, 1))
    assert not is_broken(state, date(2026, 3, 2))
    assert is_broken(state, date(2026, 3, 3))
    assert not is_broken(state, date(2026, 3, 3), grace_days=1)

    reset, changed = reset_if_broken(state, date(2026, 3, 5))
    assert changed
    assert reset.current_count == 0
    assert reset.longest_count == 4


def test_streak_without_activity_is_never_broken():
    assert not is_broken(StreakState(DAILY), date(2026, 3, 5))
    _, changed = reset_if_broken(StreakState(DAILY), date(2026, 3, 5))
    assert not changed


def test_milestones():
    assert milestone_reached(7)
    assert milestone_reached(365)
    assert not milestone_reached(8)
    assert next_milestone(0) == 7
    assert next_milestone(30) == 60
    assert next_milestone(365) is None


def test_at_risk_when_today_not_yet_recorded():
    state = StreakState(DAILY, current_count=3, longest_count=3, last_activity_date=date(2026, 3, 1))
    assert is_at_risk(state, date(2026, 3, 2))
    assert not is_at_risk(state, date(2026, 3, 1))
    assert not is_at_risk(StreakState(DAILY), date(2026, 3, 2))
