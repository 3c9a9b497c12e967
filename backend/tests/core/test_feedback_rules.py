"""Feedback Rules - NPS eligibility windows and score categories."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.feedback_rules import (
    NpsFacts, days_until_nps_eligible, next_nps_eligible_at, nps_category,
    nps_eligible, nps_follow_up_question,
)

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _facts(signup_days_ago=60, prompted_days_ago=None, has_daily_plan=True) -> NpsFacts:
    prompted = NOW - timedelta(days=prompted_days_ago) if prompted_days_ago is not None else None
    return NpsFacts(
        signed_up_at=NOW - timedelta(days=signup_days_ago),
        last_prompted_at=prompted,
        has_daily_plan=has_daily_plan,
    )


def test_active_user_never_prompted_is_eligible():
    facts = _facts()
    assert nps_eligible(facts, NOW)
    assert days_until_nps_eligible(facts, NOW) == 0


def test_signup_clock_counts_whole_days():
    facts = _facts(signup_days_ago=12)
    assert not nps_eligible(facts, NOW)
    assert days_until_nps_eligible(facts, NOW) == 18

    almost = NpsFacts(NOW - timedelta(days=29, hours=23), None, True)
    assert days_until_nps_eligible(almost, NOW) == 1


def test_missing_daily_plan_blocks_without_countdown():
    facts = _facts(has_daily_plan=False)
    assert not nps_eligible(facts, NOW)
    assert days_until_nps_eligible(facts, NOW) == 0


def test_recent_prompt_blocks_for_a_quarter():
    assert days_until_nps_eligible(_facts(prompted_days_ago=10), NOW) == 80
    assert not nps_eligible(_facts(prompted_days_ago=89), NOW)
    assert nps_eligible(_facts(prompted_days_ago=90), NOW)


def test_naive_timestamps_are_read_as_utc():
    facts = NpsFacts(datetime(2026, 1, 1), datetime(2026, 5, 1), True)
    assert days_until_nps_eligible(facts, NOW) == 59


def test_next_eligible_is_ninety_days_out():
    assert next_nps_eligible_at(NOW) == NOW + timedelta(days=90)


@pytest.mark.parametrize("score, category", [
    (10, "promoter"), (9, "promoter"), (8, "passive"), (7, "passive"),
    (6, "detractor"), (0, "detractor"), (11, "unknown"), (-1, "unknown"),
])
def test_nps_category(score, category):
    assert nps_category(score) == category


def test_follow_up_question_matches_category():
    assert nps_follow_up_question(10) == "What do you love most about Hearth?"
    assert nps_follow_up_question(7) == "What could we improve to make Hearth even better?"
    assert nps_follow_up_question(2).startswith("We're sorry to hear that.")
