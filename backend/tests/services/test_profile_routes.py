"""Profile routes - password change, account deletion and personal data export."""

from sqlalchemy import select

from app.models.feedback import FeedbackReport
from app.models.user import User
from tests.services.api_helpers import PASSWORD, bearer, join_family, register

NEW_PASSWORD = "a-brand-new-passphrase"


def _change(current=PASSWORD, password=NEW_PASSWORD, confirmation=NEW_PASSWORD) -> dict:
    return {
        "current_password": current,
        "password": password,
        "password_confirmation": confirmation,
    }


# ─── Password ─────────────────────────────────────────────────────


async def test_change_password_then_login_with_new_one(client):
    registered = await client.post("/api/v1/auth/register", json={
        "email": "pat@example.com", "name": "Pat", "password": PASSWORD,
    })
    headers = bearer(registered.json()["access_token"])
    old_refresh = registered.json()["refresh_token"]

    response = await client.patch("/api/v1/users/me/password", json=_change(), headers=headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Password updated successfully"

    old = await client.post("/api/v1/auth/login", json={"email": "pat@example.com", "password": PASSWORD})
    assert old.status_code == 401
    new = await client.post("/api/v1/auth/login", json={"email": "pat@example.com", "password": NEW_PASSWORD})
    assert new.status_code == 200
    # sessions opened with the old password are gone
    refreshed = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert refreshed.status_code == 401


async def test_change_password_rejects_wrong_current_password(client):
    headers = await register(client, "pat@example.com")
    response = await client.patch(
        "/api/v1/users/me/password", json=_change(current="not-my-password"), headers=headers,
    )
    assert response.status_code == 422
    assert response.json()["error"]["message"] == "Current password is incorrect"


async def test_change_password_rejects_mismatched_confirmation(client):
    headers = await register(client, "pat@example.com")
    response = await client.patch(
        "/api/v1/users/me/password", json=_change(confirmation="something-else"), headers=headers,
    )
    assert response.status_code == 422
    assert response.json()["error"]["message"] == "Password confirmation doesn't match"


async def test_change_password_enforces_minimum_length(client):
    headers = await register(client, "pat@example.com")
    response = await client.patch(
        "/api/v1/users/me/password", json=_change(password="short", confirmation="short"), headers=headers,
    )
    assert response.status_code == 422


# ─── Deletion ─────────────────────────────────────────────────────


async def test_delete_account_requires_password(client):
    headers = await register(client, "pat@example.com")
    response = await client.request(
        "DELETE", "/api/v1/users/me", json={"password": "wrong-password"}, headers=headers,
    )
    assert response.status_code == 422
    assert response.json()["error"]["message"] == "Password is incorrect"
    assert (await client.get("/api/v1/auth/me", headers=headers)).status_code == 200


async def test_delete_account_removes_user_and_keeps_family(client, admin, test_db):
    family_id = admin["family"]["id"]
    adult = await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")
    goal = await client.post(f"/api/v1/families/{family_id}/goals", json={
        "title": "Run a 10k", "time_scale": "monthly", "visibility": "family",
    }, headers=adult)
    assert goal.status_code == 201
    plan = (await client.get(f"/api/v1/families/{family_id}/daily_plans/today", headers=adult)).json()
    await client.patch(f"/api/v1/daily_plans/{plan['daily_plan']['id']}", json={
        "tasks": [{"title": "Stretch"}],
    }, headers=adult)
    await client.post("/api/v1/feedback", json={"report_type": "bug", "title": "Crash"}, headers=adult)

    response = await client.request(
        "DELETE", "/api/v1/users/me", json={"password": PASSWORD}, headers=adult,
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Account deleted successfully"

    assert (await client.get("/api/v1/auth/me", headers=adult)).status_code == 401
    login = await client.post("/api/v1/auth/login", json={"email": "adult@example.com", "password": PASSWORD})
    assert login.status_code == 401

    members = (await client.get(
        f"/api/v1/families/{family_id}/memberships", headers=admin["headers"],
    )).json()["memberships"]
    assert [m["email"] for m in members] == ["admin@example.com"]
    goals = (await client.get(f"/api/v1/families/{family_id}/goals", headers=admin["headers"])).json()
    assert goals["goals"] == []

    assert await test_db.scalar(select(User).where(User.email == "adult@example.com")) is None
    report = (await test_db.execute(select(FeedbackReport))).scalar_one()
    assert report.title == "Crash"
    assert report.user_id is None


# ─── Export ───────────────────────────────────────────────────────


async def test_export_contains_own_data(client, admin):
    family_id = admin["family"]["id"]
    headers = admin["headers"]
    await client.post(f"/api/v1/families/{family_id}/goals", json={
        "title": "Plant tomatoes", "time_scale": "monthly",
    }, headers=headers)
    plan = (await client.get(f"/api/v1/families/{family_id}/daily_plans/today", headers=headers)).json()
    await client.patch(f"/api/v1/daily_plans/{plan['daily_plan']['id']}", json={
        "intention": "Slow morning",
        "tasks": [{"title": "Water plants"}],
        "top_priorities": [{"title": "Call grandma", "priority_order": 1}],
    }, headers=headers)
    await client.get("/api/v1/users/me/notification_preferences", headers=headers)

    response = await client.get("/api/v1/users/me/export", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["exported_at"]
    assert data["user"]["email"] == "admin@example.com"
    assert "password_hash" not in data["user"]
    assert data["families"] == [{
        "family_id": family_id,
        "family_name": "The Testers",
        "role": "admin",
        "joined_at": data["families"][0]["joined_at"],
    }]
    [exported_plan] = data["daily_plans"]
    assert exported_plan["intention"] == "Slow morning"
    assert exported_plan["tasks"] == [{"title": "Water plants", "completed": False}]
    assert exported_plan["priorities"] == [{"title": "Call grandma", "order": 1}]
    assert data["notifications"]
    assert {"title", "body", "notification_type", "read", "created_at"} == set(data["notifications"][0])
    assert data["notification_preferences"]["quiet_hours"] == {"start": "22:00", "end": "07:00"}
    assert data["notification_preferences"]["channels"]["in_app"] is True


async def test_export_without_preferences_is_empty_object(client):
    headers = await register(client, "fresh@example.com")
    data = (await client.get("/api/v1/users/me/export", headers=headers)).json()
    assert data["families"] == []
    assert data["daily_plans"] == []
    assert data["notification_preferences"] == {}
