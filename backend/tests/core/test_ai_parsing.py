"""AI Response Parsing - fence extraction and normalization of untrusted model output."""

from datetime import date

import pytest

from app.core.ai_parsing import (
    DEFAULT_FEEDBACK, MAX_SUB_GOALS, child_time_scales, extract_json, normalize_imported_goal,
    normalize_refinement, normalize_sub_goals, parse_json_object, sub_goal_due_date,
)


def test_extract_json_prefers_json_fence():
    text = 'Sure!\n```python\nx = 1\n```\n```json\n{"a": 1}\n```'
    assert extract_json(text) == '{"a": 1}'


def test_extract_json_falls_back_to_any_fence_then_raw():
    assert extract_json('```\n{"b": 2}\n```') == '{"b": 2}'
    assert extract_json('{"c": 3}') == '{"c": 3}'


def test_parse_json_object_rejects_non_objects():
    assert parse_json_object('{"ok": true}') == {"ok": True}
    with pytest.raises(ValueError):
        parse_json_object("[1, 2]")
    with pytest.raises(ValueError):
        parse_json_object("not json")


def test_refinement_is_bounded_and_coerced():
    data = {
        "smart_suggestions": {"specific": "  Run 5k  ", "measurable": ""},
        "alternative_titles": ["a", "b", "c", "d", "e", "f"],
        "alternative_descriptions": "not a list",
        "potential_obstacles": [{"obstacle": "Rain"}, "junk", {}],
        "milestones": [{"title": "Week 1", "suggested_progress": 250}, {"description": "no title"}],
    }
    result = normalize_refinement(data)
    assert result["smart_suggestions"]["specific"] == "Run 5k"
    assert result["smart_suggestions"]["measurable"] is None
    assert result["alternative_titles"] == ["a", "b", "c", "d", "e"]
    assert result["alternative_descriptions"] == []
    assert result["potential_obstacles"] == [{"obstacle": "Rain"}]
    assert result["milestones"] == [{"title": "Week 1", "description": None, "suggested_progress": 100}]
    assert result["overall_feedback"] == DEFAULT_FEEDBACK


def test_child_time_scales():
    assert child_time_scales("annual") == ("quarterly", "monthly")
    assert child_time_scales("quarterly") == ("monthly", "weekly")
    assert child_time_scales("daily") == ("monthly", "weekly")


def test_sub_goal_due_date_scales_parent_window():
    today = date(2026, 1, 1)
    assert sub_goal_due_date(date(2026, 1, 11), 50, today) == date(2026, 1, 6)
    assert sub_goal_due_date(date(2026, 1, 11), 150, today) == date(2026, 1, 11)
    assert sub_goal_due_date(None, 50, today) is None
    assert sub_goal_due_date(date(2026, 1, 11), "soon", today) is None


def test_sub_goals_sorted_capped_and_scaled():
    raw = {
        "sub_goals": [
            {"title": "Second", "time_scale": "MONTHLY", "order": 2},
            {"title": "First", "time_scale": "weekly", "order": 1, "suggested_progress": "-5"},
            {"title": ""},
        ] + [{"title": f"Extra {i}", "order": 10 + i} for i in range(10)],
        "domain_insights": "Pace yourself",
    }
    result = normalize_sub_goals(raw, "annual", None, date(2026, 1, 1))
    titles = [sg["title"] for sg in result["sub_goals"]]
    assert titles[:2] == ["First", "Second"]
    assert len(result["sub_goals"]) <= MAX_SUB_GOALS
    first = result["sub_goals"][0]
    assert first["time_scale"] == "quarterly"
    assert first["suggested_progress"] == 0
    assert result["sub_goals"][1]["time_scale"] == "monthly"
    assert result["domain_insights"] == "Pace yourself"
    assert result["total_duration_estimate"] is None


def test_imported_goal_falls_back_to_raw_columns():
    raw = {"title": "Save money", "specific": "Save $5k", "measurable": None}
    parsed = normalize_imported_goal(
        {"time_scale": "Century", "assignee_names": "Ana", "measurable": "Monthly deposits"}, raw,
    )
    assert parsed["title"] == "Save money"
    assert parsed["time_scale"] == "annual"
    assert parsed["assignee_names"] == ["Ana"]
    assert parsed["specific"] == "Save $5k"
    assert parsed["measurable"] == "Monthly deposits"
