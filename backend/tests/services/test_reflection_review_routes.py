"""Reflection and review routes - completion side effects, ownership, period reviews, metrics."""

import pytest

from app.core.clock import local_today
from app.core.review_periods import week_start_for
from tests.services.api_helpers import join_family


def _reflections_url(admin):
    return f"/api/v1/families/{admin['family']['id']}/reflections"


def _reviews_url(admin, kind):
    return f"/api/v1/families/{admin['family']['id']}/{kind}_reviews"


async def _points(client, headers):
    return (await client.get("/api/v1/users/me/points", headers=headers)).json()["points"]


# ─── Reflections ──────────────────────────────────────────────────


async def test_create_reflection_attaches_to_today(client, admin):
    response = await client.post(_reflections_url(admin), json={
        "mood": 4,
        "gratitude_items": ["Sunshine"],
        "responses": [{"prompt": "What went well?", "response": "Shipped it"}],
    }, headers=admin["headers"])
    assert response.status_code == 201
    data = response.json()
    reflection = data["reflection"]
    assert reflection["date"] == local_today("UTC").isoformat()
    assert reflection["reflection_type"] == "evening"
    assert reflection["completed"] is False
    assert reflection["responses"][0]["response"] == "Shipped it"
    assert data["is_first_action"] is False

    plan = (await client.get(
        f"/api/v1/families/{admin['family']['id']}/daily_plans/today", headers=admin["headers"],
    )).json()["daily_plan"]
    assert reflection["daily_plan_id"] == plan["id"]


async def test_completing_evening_reflection_triggers_rewards_once(client, admin):
    created = await client.post(_reflections_url(admin), json={"mood": 3}, headers=admin["headers"])
    url = f"/api/v1/reflections/{created.json()['reflection']['id']}"

    completed = await client.patch(url, json={"completed": True}, headers=admin["headers"])
    assert completed.status_code == 200
    assert completed.json()["is_first_action"] is True

    again = await client.patch(url, json={"mood": 5}, headers=admin["headers"])
    assert again.json()["is_first_action"] is False

    points = await _points(client, admin["headers"])
    assert points["breakdown"]["complete_reflection"] == 20

    streaks = (await client.get("/api/v1/users/me/streaks", headers=admin["headers"])).json()["streaks"]
    evening = next(s for s in streaks if s["streak_type"] == "evening_reflection")
    assert evening["current_count"] == 1

    badges = (await client.get("/api/v1/users/me/badges", headers=admin["headers"])).json()
    earned = {b["name"] for b in badges["badges"] if b["earned"]}
    assert "first_reflection" in earned


async def test_quick_reflection_completion_has_no_rewards(client, admin):
    response = await client.post(_reflections_url(admin), json={
        "reflection_type": "quick", "completed": True,
    }, headers=admin["headers"])
    assert response.json()["is_first_action"] is False
    assert "complete_reflection" not in (await _points(client, admin["headers"]))["breakdown"]


async def test_reflection_on_someone_elses_plan_is_forbidden(client, admin):
    family_id = admin["family"]["id"]
    adult = await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")
    plan = (await client.get(
        f"/api/v1/families/{family_id}/daily_plans/today", headers=admin["headers"],
    )).json()["daily_plan"]
    response = await client.post(_reflections_url(admin), json={
        "daily_plan_id": plan["id"],
    }, headers=adult)
    assert response.status_code == 403


async def test_reflection_owner_only_update_and_delete(client, admin):
    family_id = admin["family"]["id"]
    adult = await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")
    created = await client.post(_reflections_url(admin), json={}, headers=admin["headers"])
    url = f"/api/v1/reflections/{created.json()['reflection']['id']}"

    assert (await client.get(url, headers=adult)).status_code == 200
    assert (await client.patch(url, json={"mood": 1}, headers=adult)).status_code == 403
    assert (await client.delete(url, headers=adult)).status_code == 403

    deleted = await client.delete(url, headers=admin["headers"])
    assert deleted.json()["message"] == "Reflection deleted successfully."
    assert (await client.get(url, headers=admin["headers"])).status_code == 404


async def test_list_reflections_filters_by_type(client, admin):
    await client.post(_reflections_url(admin), json={"reflection_type": "quick"}, headers=admin["headers"])
    await client.post(_reflections_url(admin), json={"reflection_type": "evening"}, headers=admin["headers"])

    quick = await client.get(f"{_reflections_url(admin)}?type=quick", headers=admin["headers"])
    assert [r["reflection_type"] for r in quick.json()["reflections"]] == ["quick"]
    everything = await client.get(_reflections_url(admin), headers=admin["headers"])
    assert len(everything.json()["reflections"]) == 2


# ─── Reviews ──────────────────────────────────────────────────────


async def test_current_weekly_review_is_find_or_create(client, admin):
    url = f"{_reviews_url(admin, 'weekly')}/current"
    first = await client.get(url, headers=admin["headers"])
    second = await client.get(url, headers=admin["headers"])
    assert first.status_code == 200
    review = first.json()["weekly_review"]
    assert review["id"] == second.json()["weekly_review"]["id"]
    assert review["week_start_date"] == week_start_for(local_today("UTC")).isoformat()
    assert review["wins"] == []

    listing = await client.get(_reviews_url(admin, "weekly"), headers=admin["headers"])
    assert [r["id"] for r in listing.json()["weekly_reviews"]] == [review["id"]]


async def test_completing_weekly_review_awards_points_and_streak(client, admin):
    review = (await client.get(
        f"{_reviews_url(admin, 'weekly')}/current", headers=admin["headers"],
    )).json()["weekly_review"]
    url = f"{_reviews_url(admin, 'weekly')}/{review['id']}"

    updated = await client.patch(url, json={
        "wins": ["Ran 3 times"], "lessons_learned": "Sleep matters", "completed": True,
    }, headers=admin["headers"])
    assert updated.status_code == 200
    data = updated.json()["weekly_review"]
    assert data["wins"] == ["Ran 3 times"]
    assert data["completed_at"] is not None

    await client.patch(url, json={"completed": True}, headers=admin["headers"])
    assert (await _points(client, admin["headers"]))["breakdown"]["complete_weekly_review"] == 50

    streaks = (await client.get("/api/v1/users/me/streaks", headers=admin["headers"])).json()["streaks"]
    weekly = next(s for s in streaks if s["streak_type"] == "weekly_review")
    assert weekly["current_count"] == 1


async def test_review_owner_only_writes(client, admin):
    family_id = admin["family"]["id"]
    adult = await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")
    review = (await client.get(
        f"{_reviews_url(admin, 'monthly')}/current", headers=admin["headers"],
    )).json()["monthly_review"]
    url = f"{_reviews_url(admin, 'monthly')}/{review['id']}"

    assert (await client.get(url, headers=adult)).status_code == 200
    assert (await client.patch(url, json={"highlights": ["x"]}, headers=adult)).status_code == 403

    deleted = await client.delete(url, headers=admin["headers"])
    assert deleted.json()["message"] == "Monthly review deleted successfully."


async def test_word_of_the_year_length_is_limited(client, admin):
    review = (await client.get(
        f"{_reviews_url(admin, 'annual')}/current", headers=admin["headers"],
    )).json()["annual_review"]
    assert review["year"] == local_today("UTC").year
    response = await client.patch(
        f"{_reviews_url(admin, 'annual')}/{review['id']}",
        json={"word_of_the_year": "x" * 51}, headers=admin["headers"],
    )
    assert response.status_code == 422


async def test_weekly_metrics_reflect_plans_and_goals(client, admin):
    family_id = admin["family"]["id"]
    plan = (await client.get(
        f"/api/v1/families/{family_id}/daily_plans/today", headers=admin["headers"],
    )).json()["daily_plan"]
    await client.patch(f"/api/v1/daily_plans/{plan['id']}", json={"tasks": [
        {"title": "A", "completed": True}, {"title": "B"},
    ]}, headers=admin["headers"])
    await client.post(f"/api/v1/families/{family_id}/goals", json={
        "title": "Garden", "time_scale": "monthly", "progress": 40, "status": "in_progress",
    }, headers=admin["headers"])

    review = (await client.get(
        f"{_reviews_url(admin, 'weekly')}/current", headers=admin["headers"],
    )).json()["weekly_review"]
    response = await client.get(
        f"{_reviews_url(admin, 'weekly')}/{review['id']}/metrics", headers=admin["headers"],
    )
    assert response.status_code == 200
    metrics = response.json()["metrics"]
    assert metrics["task_completion"] == {
        "total_tasks": 2, "completed_tasks": 1, "completion_rate": 50, "days_with_plans": 1,
    }
    assert metrics["goal_progress"]["in_progress_goals"] == 1
    assert metrics["goal_progress"]["average_progress"] == 40
    assert metrics["habit_tally"] == {}


@pytest.mark.parametrize("kind,keys", [
    ("monthly", {"task_completion", "goal_progress", "reflection_consistency"}),
    ("quarterly", {"goal_completion", "monthly_review_completion", "habit_consistency"}),
    ("annual", {"goals_achieved", "streaks_maintained", "review_consistency"}),
])
async def test_metrics_shape_per_kind(client, admin, kind, keys):
    review = (await client.get(
        f"{_reviews_url(admin, kind)}/current", headers=admin["headers"],
    )).json()[f"{kind}_review"]
    response = await client.get(
        f"{_reviews_url(admin, kind)}/{review['id']}/metrics", headers=admin["headers"],
    )
    assert set(response.json()["metrics"]) == keys


async def test_review_from_another_family_is_404(client, admin):
    review = (await client.get(
        f"{_reviews_url(admin, 'weekly')}/current", headers=admin["headers"],
    )).json()["weekly_review"]
    other = await client.post("/api/v1/auth/register", json={
        "email": "other@example.com", "name": "Other", "password": "long-enough-pw",
    })
    headers = {"Authorization": f"Bearer {other.json()['access_token']}"}
    family = (await client.post("/api/v1/families", json={"name": "Others"}, headers=headers)).json()["family"]
    response = await client.get(
        f"/api/v1/families/{family['id']}/weekly_reviews/{review['id']}", headers=headers,
    )
    assert response.status_code == 404
