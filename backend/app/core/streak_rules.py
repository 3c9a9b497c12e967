"""Streak Rules - pure transitions for consecutive-period activity counters.

Invariants:
    - current_count >= 0 and longest_count >= current_count after any recorded activity
    - Expected gap between activities: 7 days for weekly_review, 1 day otherwise
    - Recording the same period twice is a no-op (returns recorded=False)
    - A gap larger than expected restarts the count at 1; longest_count is never lowered
    - Resetting a broken streak zeroes current_count only

Design Decisions:
    - StreakState is a frozen dataclass: services copy values onto the ORM row
      after the pure transition (ADR: streak math testable without a database)
    - Dates are family-local calendar dates supplied by the caller
"""

from dataclasses import dataclass, replace
from datetime import date, timedelta

from app.core.domain_types import StreakType

MILESTONE_THRESHOLDS = (7, 14, 30, 60, 90, 180, 365)

WEEKLY_STREAK_TYPES = frozenset({StreakType.WEEKLY_REVIEW})


@dataclass(frozen=True)
class StreakState:
    streak_type: StreakType
    current_count: int = 0
    longest_count: int = 0
    last_activity_date: date | None = None


def expected_gap_days(streak_type: StreakType | str) -> int:
    return 7 if StreakType(streak_type) in WEEKLY_STREAK_TYPES else 1


def is_broken(state: StreakState, current_date: date, grace_days: int = 0) -> bool:
    if state.last_activity_date is None:
        return False
    gap = (current_date - state.last_activity_date).days
    return gap > expected_gap_days(state.streak_type) + grace_days


def already_recorded(state: StreakState, activity_date: date) -> bool:
    last = state.last_activity_date
    if last is None:
        return False
    if expected_gap_days(state.streak_type) == 7:
        return last >= activity_date - timedelta(days=6)
    return last == activity_date


def record_activity(state: StreakState, activity_date: date) -> tuple[StreakState, bool]:
    """Apply one activity. Returns (new_state, recorded)."""
    if already_recorded(state, activity_date):
        return state, False

    last = state.last_activity_date
    continues = last is None or 0 <= (activity_date - last).days <= expected_gap_days(
        state.streak_type,
    )
    count = state.current_count + 1 if continues else 1
    return replace(
        state,
        current_count=count,
        longest_count=max(state.longest_count, count),
        last_activity_date=activity_date,
    ), True


def reset_if_broken(state: StreakState, current_date: date) -> tuple[StreakState, bool]:
    if not is_broken(state, current_date):
        return state, False
    return replace(state, current_count=0), True


def milestone_reached(count: int) -> bool:
    return count in MILESTONE_THRESHOLDS


def next_milestone(count: int) -> int | None:
    return next((t for t in MILESTONE_THRESHOLDS if t > count), None)


def is_at_risk(state: StreakState, today: date) -> bool:
    """Active streak that has not been extended for the current period yet."""
    if state.current_count <= 0 or state.last_activity_date is None:
        return False
    if expected_gap_days(state.streak_type) == 7:
        return state.last_activity_date < today - timedelta(days=6)
    return state.last_activity_date < today
