"""Review Metrics - rates, plan completion and dashboard aggregates."""

from datetime import date

from app.core.review_metrics import (
    ChildProgress, GoalSnapshot, PlanSnapshot, aggregated_progress, annual_goals_achieved,
    goal_progress, habit_tally, monthly_review_completion, plan_completion, rate,
    reflection_consistency, review_consistency, streaks_maintained, task_completion,
    weekly_review_consistency,
)


def test_rate_rounds_half_up_and_handles_zero():
    assert rate(1, 8) == 13
    assert rate(1, 3) == 33
    assert rate(2, 3) == 67
    assert rate(5, 0) == 0


def test_plan_completion_ignores_blank_priorities():
    result = plan_completion(
        [("Ship report", True), ("  ", True), ("Call mom", False)],
        [True, False],
    )
    assert result.to_dict() == {"total": 4, "completed": 2, "percentage": 50}


def test_empty_plan_completion_is_zero():
    assert plan_completion([], []).to_dict() == {"total": 0, "completed": 0, "percentage": 0}


def test_aggregated_progress_skips_abandoned_children():
    children = [
        ChildProgress(progress=100, status="completed"),
        ChildProgress(progress=50, status="in_progress"),
        ChildProgress(progress=0, status="abandoned"),
    ]
    assert aggregated_progress(10, children) == 75


def test_aggregated_progress_keeps_own_only_without_children():
    assert aggregated_progress(40, []) == 40


def test_aggregated_progress_is_zero_when_every_child_abandoned():
    assert aggregated_progress(40, [ChildProgress(progress=90, status="abandoned")]) == 0


def test_aggregated_progress_counts_draft_children():
    children = [ChildProgress(progress=0, status="not_started", is_draft=True)]
    assert aggregated_progress(80, children) == 0


def test_goal_progress_counts_statuses():
    goals = [
        GoalSnapshot(status="completed", progress=100),
        GoalSnapshot(status="in_progress", progress=45),
        GoalSnapshot(status="at_risk", progress=10),
    ]
    assert goal_progress(goals) == {
        "total_goals": 3,
        "completed_goals": 1,
        "in_progress_goals": 1,
        "at_risk_goals": 1,
        "average_progress": 52,
    }


def test_annual_goals_achieved_counts_abandoned():
    goals = [GoalSnapshot(status="abandoned", progress=20), GoalSnapshot(status="completed", progress=100)]
    result = annual_goals_achieved(goals)
    assert result["total_annual_goals"] == 2
    assert result["abandoned_goals"] == 1
    assert result["average_progress"] == 60


def test_task_completion_and_habit_tally():
    plans = [
        PlanSnapshot(date(2026, 3, 2), tasks_total=4, tasks_completed=3, completed_habit_names=("Read",)),
        PlanSnapshot(date(2026, 3, 3), tasks_total=0, completed_habit_names=("Read", "Run")),
    ]
    assert task_completion(plans) == {
        "total_tasks": 4,
        "completed_tasks": 3,
        "completion_rate": 75,
        "days_with_plans": 1,
    }
    assert habit_tally(plans) == {"Read": 2, "Run": 1}


def test_consistency_blocks():
    assert reflection_consistency(31, 31)["consistency_rate"] == 100
    assert monthly_review_completion(2)["completion_rate"] == 67
    assert weekly_review_consistency(13)["consistency_rate"] == 100
    annual = review_consistency(quarterly=2, monthly=6, weekly=26)
    assert annual["quarterly_reviews"]["rate"] == 50
    assert annual["monthly_reviews"]["total"] == 12
    assert annual["weekly_reviews"]["rate"] == 50


def test_streaks_maintained_defaults_missing_types_to_zero():
    assert streaks_maintained({"daily_planning": 12}) == {
        "longest_daily_planning_streak": 12,
        "longest_reflection_streak": 0,
        "longest_weekly_review_streak": 0,
    }
