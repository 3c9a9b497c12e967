"""Goal import - CSV upload, per-row AI parsing, category tracking and summary notification."""

import json
from types import SimpleNamespace
from uuid import uuid4

from app.services.goal_import import match_assignee
from tests.services.api_helpers import join_family

CSV = (
    "Category,Title,Specific,Measurable,Achievable,Relevant,Time-bound\n"
    "Health,,,,,,\n"
    ",Run a marathon,Finish under 4h,,,,By October\n"
    ",Eat vegetables,Five a day,,,,\n"
    "Family,,,,,,\n"
    ",Weekly game night,,,,,\n"
)


def _upload(content: bytes):
    return {"file": ("goals.csv", content, "text/csv")}


async def _import(client, admin, content: bytes):
    return await client.post(
        f"/api/v1/families/{admin['family']['id']}/goal_imports",
        files=_upload(content), headers=admin["headers"],
    )


async def _inbox_titles(client, headers):
    inbox = (await client.get("/api/v1/notifications", headers=headers)).json()["notifications"]
    return {n["title"]: n["body"] for n in inbox}


async def test_import_creates_goals_and_reports_failures(client, admin, fake_ai):
    await join_family(client, admin["headers"], admin["family"]["id"], "ada@example.com", "Ada Lovelace", "adult")
    fake_ai.reply(
        json.dumps({"title": "Run a marathon", "time_scale": "annual", "assignee_names": ["Ada"]}),
        "```json\n" + json.dumps({"title": "Eat vegetables", "time_scale": "weekly"}) + "\n```",
    ).fail()

    response = await _import(client, admin, CSV.encode())
    assert response.status_code == 202
    assert response.json()["row_count"] == 6
    assert len(fake_ai.calls) == 3
    assert "Health" in fake_ai.calls[0]["prompt"]

    goals = (await client.get(
        f"/api/v1/families/{admin['family']['id']}/goals", headers=admin["headers"],
    )).json()["goals"]
    by_title = {g["title"]: g for g in goals}
    assert set(by_title) == {"Run a marathon", "Eat vegetables"}
    marathon = by_title["Run a marathon"]
    assert marathon["time_scale"] == "annual"
    assert marathon["specific"] == "Finish under 4h"
    assert marathon["description"].startswith("Health")
    assert [a["name"] for a in marathon["assignees"]] == ["Ada Lovelace"]
    assert by_title["Eat vegetables"]["visibility"] == "family"

    inbox = await _inbox_titles(client, admin["headers"])
    assert inbox["Goal import complete"] == "2 goals imported, 1 rows failed."


async def test_import_rejects_empty_and_binary_files(client, admin, fake_ai):
    assert (await _import(client, admin, b"   \n")).status_code == 422
    assert (await _import(client, admin, b"\xff\xfe\x00bad")).status_code == 422
    assert fake_ai.calls == []


async def test_import_requires_goal_manager(client, admin, fake_ai):
    child = await join_family(client, admin["headers"], admin["family"]["id"], "kid@example.com", "Kit", "child")
    response = await client.post(
        f"/api/v1/families/{admin['family']['id']}/goal_imports",
        files=_upload(CSV.encode()), headers=child,
    )
    assert response.status_code == 403


def test_match_assignee_prefers_first_name_then_full_then_substring():
    ana = SimpleNamespace(id=uuid4(), name="Ana Silva")
    anabel = SimpleNamespace(id=uuid4(), name="Anabel Cruz")
    members = [anabel, ana]
    assert match_assignee("ana", members) == ana.id
    assert match_assignee("Anabel Cruz", members) == anabel.id
    assert match_assignee("Cruz", members) == anabel.id
    assert match_assignee("Zed", members) is None
    assert match_assignee("  ", members) is None
