"""Points table, badge criteria and leaderboard ranking - pure gamification rules."""

from uuid import uuid4

import pytest

from app.core.badge_rules import BADGE_DEFINITIONS, BadgeStats, criterion_threshold, is_eligible
from app.core.domain_types import ActivityType
from app.core.leaderboard import LeaderboardEntry, rank_entries, streak_summary
from app.core.points_table import (
    DEFAULT_RECENT_LIMIT, clamp_recent_limit, label_for, points_for,
)


# ─── Points ──────────────────────────────────────────────────────

def test_point_values():
    assert points_for(ActivityType.COMPLETE_TASK) == 5
    assert points_for("complete_daily_plan") == 10
    assert points_for("complete_reflection") == 20
    assert points_for("complete_weekly_review") == 50
    assert points_for("create_goal") == 15
    assert points_for("complete_goal") == 30
    assert points_for("earn_badge") == 25
    assert points_for("streak_milestone") == 50


def test_unknown_activity_is_worth_nothing():
    assert points_for("walk_the_dog") == 0


def test_labels_fall_back_to_humanized_name():
    assert label_for("complete_task") == "Completed a task"
    assert label_for("walk_the_dog") == "Walk the dog"


@pytest.mark.parametrize("raw,expected", [
    (None, DEFAULT_RECENT_LIMIT),
    ("5", 5),
    (100, 100),
    ("0", DEFAULT_RECENT_LIMIT),
    ("101", DEFAULT_RECENT_LIMIT),
    ("abc", DEFAULT_RECENT_LIMIT),
])
def test_recent_limit_clamping(raw, expected):
    assert clamp_recent_limit(raw) == expected


# ─── Badges ──────────────────────────────────────────────────────

def test_badge_catalogue_names_are_unique():
    names = [b["name"] for b in BADGE_DEFINITIONS]
    assert len(names) == len(set(names)) == 10


def test_threshold_reads_count_or_days():
    assert criterion_threshold({"type": "goal_count", "count": 5}) == 5
    assert criterion_threshold({"type": "streak_days", "days": "7"}) == 7
    assert criterion_threshold({"type": "goal_count"}) is None
    assert criterion_threshold({"type": "goal_count", "count": "many"}) is None


def test_eligibility_compares_stat_with_threshold():
    stats = BadgeStats(goal_count=5, reflection_count=0, daily_plan_count=1, max_streak_days=6)
    assert is_eligible({"type": "goal_count", "count": 5}, stats)
    assert not is_eligible({"type": "goal_count", "count": 25}, stats)
    assert is_eligible({"type": "daily_plan_count", "count": 1}, stats)
    assert not is_eligible({"type": "streak_days", "days": 7}, stats)


def test_unknown_criteria_type_never_eligible():
    assert not is_eligible({"type": "moon_phase", "count": 0}, BadgeStats(goal_count=100))


# ─── Leaderboard ─────────────────────────────────────────────────

def test_competition_ranking_shares_ties_and_skips():
    entries = [
        LeaderboardEntry(user_id=uuid4(), name="carol", points=40),
        LeaderboardEntry(user_id=uuid4(), name="Bob", points=70),
        LeaderboardEntry(user_id=uuid4(), name="alice", points=70),
    ]
    ranked = rank_entries(entries)
    assert [(e.name, e.rank) for e in ranked] == [("alice", 1), ("Bob", 1), ("carol", 3)]
    assert all(e.rank == 0 for e in entries)


def test_entry_serialization():
    uid = uuid4()
    data = LeaderboardEntry(user_id=uid, name="Ana", points=10, badges_count=2, rank=1).to_dict()
    assert data["user_id"] == str(uid)
    assert data["points"] == 10
    assert data["badges_count"] == 2


def test_streak_summary_fills_missing_types_and_totals():
    summary = streak_summary({"daily_planning": 3}, ["daily_planning", "evening_reflection"])
    assert summary == {"daily_planning": 3, "evening_reflection": 0, "total": 3}
