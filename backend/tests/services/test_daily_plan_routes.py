"""Daily plan and habit routes - nested plan updates, completion points, streaks, habits."""

from datetime import timedelta
from uuid import UUID

from app.core.clock import local_today
from app.models.daily_plan import DailyPlan, DailyTask
from tests.services.api_helpers import join_family


async def _today(client, admin):
    response = await client.get(
        f"/api/v1/families/{admin['family']['id']}/daily_plans/today", headers=admin["headers"],
    )
    assert response.status_code == 200, response.text
    return response.json()["daily_plan"]


async def _habit(client, admin, name):
    response = await client.post(
        f"/api/v1/families/{admin['family']['id']}/habits", json={"name": name}, headers=admin["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()["habit"]


async def _points(client, headers):
    return (await client.get("/api/v1/users/me/points", headers=headers)).json()


# ─── Daily plans ──────────────────────────────────────────────────


async def test_today_is_find_or_create(client, admin):
    first = await _today(client, admin)
    second = await _today(client, admin)
    assert first["id"] == second["id"]
    assert first["date"] == local_today("UTC").isoformat()
    assert first["completion_stats"] == {"total": 0, "completed": 0, "percentage": 0}
    assert first["yesterday_incomplete_tasks"] == []


async def test_update_replaces_nested_lists(client, admin):
    plan = await _today(client, admin)
    url = f"/api/v1/daily_plans/{plan['id']}"

    response = await client.patch(url, json={
        "intention": "Focus on deep work",
        "tasks": [{"title": "Write report"}, {"title": "Email Sam"}],
        "top_priorities": [{"title": "Ship report", "priority_order": 1}],
    }, headers=admin["headers"])
    assert response.status_code == 200
    data = response.json()["daily_plan"]
    assert data["intention"] == "Focus on deep work"
    assert [t["title"] for t in data["tasks"]] == ["Write report", "Email Sam"]
    assert [t["position"] for t in data["tasks"]] == [0, 1]
    assert data["completion_stats"] == {"total": 1, "completed": 0, "percentage": 0}

    again = await client.patch(url, json={"tasks": [{"title": "Only task"}]}, headers=admin["headers"])
    data = again.json()["daily_plan"]
    assert [t["title"] for t in data["tasks"]] == ["Only task"]
    assert [p["title"] for p in data["top_priorities"]] == ["Ship report"]


async def test_completing_tasks_awards_points_once(client, admin):
    plan = await _today(client, admin)
    url = f"/api/v1/daily_plans/{plan['id']}"
    created = await client.patch(url, json={"tasks": [{"title": "Laundry"}]}, headers=admin["headers"])
    task_id = created.json()["daily_plan"]["tasks"][0]["id"]

    done = {"tasks": [{"id": task_id, "title": "Laundry", "completed": True}]}
    await client.patch(url, json=done, headers=admin["headers"])
    await client.patch(url, json=done, headers=admin["headers"])

    breakdown = (await _points(client, admin["headers"]))["points"]["breakdown"]
    assert breakdown["complete_task"] == 5


async def test_full_completion_awards_plan_points_once(client, admin):
    plan = await _today(client, admin)
    habit = await _habit(client, admin, "Meditate")
    url = f"/api/v1/daily_plans/{plan['id']}"

    partial = await client.patch(url, json={
        "top_priorities": [{"title": "Gym", "completed": True}],
        "habit_completions": [{"habit_id": habit["id"], "completed": False}],
    }, headers=admin["headers"])
    assert partial.json()["daily_plan"]["completion_stats"]["percentage"] == 50
    assert partial.json()["is_first_action"] is True

    complete = await client.patch(url, json={
        "habit_completions": [{"habit_id": habit["id"], "completed": True}],
    }, headers=admin["headers"])
    assert complete.json()["daily_plan"]["completion_stats"] == {"total": 2, "completed": 2, "percentage": 100}
    assert complete.json()["is_first_action"] is False

    repeat = await client.patch(url, json={"intention": "Still done"}, headers=admin["headers"])
    assert repeat.json()["is_first_action"] is False
    breakdown = (await _points(client, admin["headers"]))["points"]["breakdown"]
    assert breakdown["complete_daily_plan"] == 10


async def test_first_plan_with_content_is_first_action(client, admin):
    plan = await _today(client, admin)
    url = f"/api/v1/daily_plans/{plan['id']}"

    empty = await client.patch(url, json={"tasks": []}, headers=admin["headers"])
    assert empty.json()["is_first_action"] is False

    first = await client.patch(url, json={"tasks": [{"title": "Pay bills"}]}, headers=admin["headers"])
    assert first.json()["is_first_action"] is True
    me = (await client.get("/api/v1/auth/me", headers=admin["headers"])).json()["user"]
    assert "daily_plan_completed" in me["first_actions"]


async def test_plan_with_content_records_planning_streak(client, admin):
    plan = await _today(client, admin)
    await client.patch(
        f"/api/v1/daily_plans/{plan['id']}", json={"intention": "Be kind"}, headers=admin["headers"],
    )
    streaks = (await client.get("/api/v1/users/me/streaks", headers=admin["headers"])).json()["streaks"]
    planning = next(s for s in streaks if s["streak_type"] == "daily_planning")
    assert planning["current_count"] == 1
    assert planning["at_risk"] is False


async def test_only_owner_updates_but_members_can_read(client, admin):
    family_id = admin["family"]["id"]
    adult = await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")
    plan = await _today(client, admin)
    url = f"/api/v1/daily_plans/{plan['id']}"

    assert (await client.get(url, headers=adult)).status_code == 200
    assert (await client.patch(url, json={"intention": "Mine now"}, headers=adult)).status_code == 403


async def test_habit_completion_requires_own_habit(client, admin):
    family_id = admin["family"]["id"]
    adult = await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")
    foreign = await client.post(f"/api/v1/families/{family_id}/habits", json={"name": "Hers"}, headers=adult)
    plan = await _today(client, admin)
    response = await client.patch(f"/api/v1/daily_plans/{plan['id']}", json={
        "habit_completions": [{"habit_id": foreign.json()["habit"]["id"], "completed": True}],
    }, headers=admin["headers"])
    assert response.status_code == 422


async def test_more_than_three_priorities_rejected(client, admin):
    plan = await _today(client, admin)
    response = await client.patch(f"/api/v1/daily_plans/{plan['id']}", json={
        "top_priorities": [{"title": str(i)} for i in range(4)],
    }, headers=admin["headers"])
    assert response.status_code == 422


async def test_yesterday_incomplete_tasks_and_listing(client, admin, test_db):
    me = (await client.get("/api/v1/auth/me", headers=admin["headers"])).json()["user"]
    yesterday = local_today("UTC") - timedelta(days=1)
    test_db.add(DailyPlan(
        user_id=UUID(me["id"]),
        family_id=UUID(admin["family"]["id"]),
        plan_date=yesterday,
        tasks=[
            DailyTask(title="Unfinished", completed=False, position=0),
            DailyTask(title="Finished", completed=True, position=1),
        ],
        top_priorities=[],
        habit_completions=[],
    ))
    await test_db.commit()

    plan = await _today(client, admin)
    assert [t["title"] for t in plan["yesterday_incomplete_tasks"]] == ["Unfinished"]

    listing = await client.get(
        f"/api/v1/families/{admin['family']['id']}/daily_plans?from={yesterday.isoformat()}",
        headers=admin["headers"],
    )
    assert [p["date"] for p in listing.json()["daily_plans"]] == [
        local_today("UTC").isoformat(), yesterday.isoformat(),
    ]


# ─── Habits ───────────────────────────────────────────────────────


async def test_habits_append_in_order_and_reorder(client, admin):
    read = await _habit(client, admin, "Read")
    run = await _habit(client, admin, "  Run ")
    assert (read["position"], run["position"], run["name"]) == (0, 1, "Run")

    base = f"/api/v1/families/{admin['family']['id']}/habits"
    response = await client.post(f"{base}/update_positions", json={"positions": [
        {"id": read["id"], "position": 1}, {"id": run["id"], "position": 0},
    ]}, headers=admin["headers"])
    assert [h["name"] for h in response.json()["habits"]] == ["Run", "Read"]


async def test_habit_rename_and_soft_delete(client, admin):
    habit = await _habit(client, admin, "Journal")
    base = f"/api/v1/families/{admin['family']['id']}/habits"

    renamed = await client.patch(f"{base}/{habit['id']}", json={"name": "Journal daily"}, headers=admin["headers"])
    assert renamed.json()["habit"]["name"] == "Journal daily"

    deleted = await client.delete(f"{base}/{habit['id']}", headers=admin["headers"])
    assert deleted.json()["message"] == "Habit deleted successfully."
    assert (await client.get(base, headers=admin["headers"])).json()["habits"] == []
    assert (await client.patch(f"{base}/{habit['id']}", json={"name": "x"}, headers=admin["headers"])).status_code == 404


async def test_habits_are_private_to_their_owner(client, admin):
    family_id = admin["family"]["id"]
    adult = await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")
    habit = await _habit(client, admin, "Mine")
    base = f"/api/v1/families/{family_id}/habits"
    assert (await client.get(base, headers=adult)).json()["habits"] == []
    assert (await client.delete(f"{base}/{habit['id']}", headers=adult)).status_code == 404
