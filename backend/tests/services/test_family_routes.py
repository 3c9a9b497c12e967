"""Family routes - families, memberships, invitations and the leaderboard."""

from datetime import timedelta

from sqlalchemy import update

from app.core.clock import utcnow
from app.models.family import Invitation
from tests.services.api_helpers import PASSWORD, create_family, join_family, register


# ─── Families ─────────────────────────────────────────────────────


async def test_create_family_makes_creator_admin(client):
    headers = await register(client, "founder@example.com", "Founder")
    response = await client.post("/api/v1/families", json={
        "name": "  Smiths ", "timezone": "America/New_York",
    }, headers=headers)
    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Family created successfully."
    assert data["family"]["name"] == "Smiths"
    assert data["family"]["timezone"] == "America/New_York"
    assert data["membership"]["role"] == "admin"


async def test_user_can_run_several_families(client, admin):
    response = await client.post("/api/v1/families", json={"name": "Cabin crew"}, headers=admin["headers"])
    assert response.status_code == 201
    second_id = response.json()["family"]["id"]

    listing = (await client.get("/api/v1/families", headers=admin["headers"])).json()["families"]
    assert [f["id"] for f in listing] == [admin["family"]["id"], second_id]


async def test_invalid_timezone_rejected(client):
    headers = await register(client, "tz@example.com")
    response = await client.post("/api/v1/families", json={
        "name": "Nowhere", "timezone": "Mars/Olympus_Mons",
    }, headers=headers)
    assert response.status_code == 422


async def test_list_and_show_family(client, admin):
    family_id = admin["family"]["id"]
    listing = await client.get("/api/v1/families", headers=admin["headers"])
    assert [f["id"] for f in listing.json()["families"]] == [family_id]

    shown = await client.get(f"/api/v1/families/{family_id}", headers=admin["headers"])
    assert shown.status_code == 200
    data = shown.json()
    assert data["current_user_role"] == "admin"
    assert [m["name"] for m in data["family"]["members"]] == ["Alex Admin"]


async def test_non_member_gets_403(client, admin):
    outsider = await register(client, "outsider@example.com")
    response = await client.get(f"/api/v1/families/{admin['family']['id']}", headers=outsider)
    assert response.status_code == 403


async def test_update_family_admin_only(client, admin):
    family_id = admin["family"]["id"]
    adult = await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")

    denied = await client.patch(f"/api/v1/families/{family_id}", json={"name": "Nope"}, headers=adult)
    assert denied.status_code == 403

    response = await client.patch(
        f"/api/v1/families/{family_id}", json={"name": "Renamed"}, headers=admin["headers"],
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Family updated successfully."
    assert response.json()["family"]["name"] == "Renamed"


async def test_delete_family(client, admin):
    family_id = admin["family"]["id"]
    response = await client.delete(f"/api/v1/families/{family_id}", headers=admin["headers"])
    assert response.status_code == 200
    assert response.json()["message"] == "Family deleted successfully."

    listing = await client.get("/api/v1/families", headers=admin["headers"])
    assert listing.json()["families"] == []


# ─── Memberships ──────────────────────────────────────────────────


async def test_admin_changes_role_and_removes_member(client, admin):
    family_id = admin["family"]["id"]
    base = f"/api/v1/families/{family_id}/memberships"
    await join_family(client, admin["headers"], family_id, "teen@example.com", "Tess", "teen")

    members = (await client.get(base, headers=admin["headers"])).json()["memberships"]
    teen = next(m for m in members if m["email"] == "teen@example.com")
    assert teen["role"] == "teen"

    updated = await client.patch(f"{base}/{teen['id']}", json={"role": "adult"}, headers=admin["headers"])
    assert updated.status_code == 200
    assert updated.json()["message"] == "Member role updated successfully."
    assert updated.json()["membership"]["role"] == "adult"

    removed = await client.delete(f"{base}/{teen['id']}", headers=admin["headers"])
    assert removed.status_code == 200
    assert removed.json()["message"] == "Member removed from family successfully."


async def test_admin_cannot_change_own_membership(client, admin):
    family_id = admin["family"]["id"]
    base = f"/api/v1/families/{family_id}/memberships"
    members = (await client.get(base, headers=admin["headers"])).json()["memberships"]
    response = await client.patch(f"{base}/{members[0]['id']}", json={"role": "adult"}, headers=admin["headers"])
    assert response.status_code == 403


async def test_non_admin_cannot_remove_members(client, admin):
    family_id = admin["family"]["id"]
    base = f"/api/v1/families/{family_id}/memberships"
    adult = await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")
    members = (await client.get(base, headers=adult)).json()["memberships"]
    admin_membership = next(m for m in members if m["role"] == "admin")
    response = await client.delete(f"{base}/{admin_membership['id']}", headers=adult)
    assert response.status_code == 403


# ─── Invitations ──────────────────────────────────────────────────


async def _invite(client, admin, email="kid@example.com", role="child"):
    response = await client.post(f"/api/v1/families/{admin['family']['id']}/invitations", json={
        "email": email, "role": role,
    }, headers=admin["headers"])
    assert response.status_code == 201, response.text
    return response.json()["invitation"]


async def test_invitation_created_and_listed(client, admin):
    invitation = await _invite(client, admin)
    assert invitation["role"] == "child"
    assert invitation["inviter"]["name"] == "Alex Admin"
    assert invitation["token"]

    listing = await client.get(
        f"/api/v1/families/{admin['family']['id']}/invitations", headers=admin["headers"],
    )
    assert [i["email"] for i in listing.json()["invitations"]] == ["kid@example.com"]


async def test_child_cannot_invite(client, admin):
    family_id = admin["family"]["id"]
    child = await join_family(client, admin["headers"], family_id, "kid@example.com", "Kit", "child")
    response = await client.post(f"/api/v1/families/{family_id}/invitations", json={
        "email": "friend@example.com",
    }, headers=child)
    assert response.status_code == 403


async def test_inviting_existing_member_is_rejected(client, admin):
    response = await client.post(f"/api/v1/families/{admin['family']['id']}/invitations", json={
        "email": "admin@example.com",
    }, headers=admin["headers"])
    assert response.status_code == 422


async def test_cancel_and_resend_invitation(client, admin):
    family_id = admin["family"]["id"]
    invitation = await _invite(client, admin)
    base = f"/api/v1/families/{family_id}/invitations/{invitation['id']}"

    resent = await client.post(f"{base}/resend", headers=admin["headers"])
    assert resent.status_code == 200
    assert resent.json()["message"] == "Invitation resent successfully."

    cancelled = await client.delete(base, headers=admin["headers"])
    assert cancelled.status_code == 200
    assert cancelled.json()["message"] == "Invitation cancelled successfully."


async def test_anonymous_accept_asks_for_credentials(client, admin):
    invitation = await _invite(client, admin)
    response = await client.post(f"/api/v1/invitations/{invitation['token']}/accept")
    assert response.status_code == 401
    data = response.json()
    assert data["requires_auth"] is True
    assert data["invitation"] == {
        "email": "kid@example.com", "family_name": "The Testers", "role": "child",
    }


async def test_anonymous_accept_with_credentials_registers_invitee(client, admin):
    invitation = await _invite(client, admin)
    response = await client.post(f"/api/v1/invitations/{invitation['token']}/accept", json={
        "user": {"name": "Kit", "password": PASSWORD},
    })
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Invitation accepted successfully."
    assert data["family"]["name"] == "The Testers"
    assert data["is_first_action"] is True
    assert data["user"]["email"] == "kid@example.com"
    assert data["access_token"]


async def test_existing_user_accept_checks_password(client, admin):
    await register(client, "kid@example.com", "Kit")
    invitation = await _invite(client, admin)
    response = await client.post(f"/api/v1/invitations/{invitation['token']}/accept", json={
        "user": {"password": "not-the-password"},
    })
    assert response.status_code == 401


async def test_accepted_invitation_cannot_be_reused(client, admin):
    invitation = await _invite(client, admin)
    kid = await register(client, "kid@example.com", "Kit")
    first = await client.post(f"/api/v1/invitations/{invitation['token']}/accept", headers=kid)
    assert first.status_code == 200
    again = await client.post(f"/api/v1/invitations/{invitation['token']}/accept", headers=kid)
    assert again.status_code == 410


async def test_expired_and_unknown_invitations(client, admin, test_db):
    invitation = await _invite(client, admin)
    await test_db.execute(
        update(Invitation).values(expires_at=utcnow() - timedelta(days=1)),
    )
    await test_db.commit()

    expired = await client.post(f"/api/v1/invitations/{invitation['token']}/accept")
    assert expired.status_code == 410
    unknown = await client.post("/api/v1/invitations/no-such-token/accept")
    assert unknown.status_code == 404


async def test_member_of_another_family_can_join_and_data_stays_apart(client, admin):
    invitation = await _invite(client, admin, email="other@example.com", role="adult")
    other = await register(client, "other@example.com", "Other")
    own_family = await create_family(client, other, name="Others")
    await client.post(f"/api/v1/families/{own_family['id']}/goals", json={
        "title": "Own family goal", "time_scale": "monthly", "visibility": "family",
    }, headers=other)

    response = await client.post(f"/api/v1/invitations/{invitation['token']}/accept", headers=other)
    assert response.status_code == 200
    assert response.json()["family"]["id"] == admin["family"]["id"]

    await client.post(f"/api/v1/families/{admin['family']['id']}/goals", json={
        "title": "Testers goal", "time_scale": "monthly", "visibility": "family",
    }, headers=other)

    def titles(resp):
        return [g["title"] for g in resp.json()["goals"]]

    in_testers = await client.get(f"/api/v1/families/{admin['family']['id']}/goals", headers=other)
    in_own = await client.get(f"/api/v1/families/{own_family['id']}/goals", headers=other)
    assert titles(in_testers) == ["Testers goal"]
    assert titles(in_own) == ["Own family goal"]

    roles = {
        f["id"]: (await client.get(f"/api/v1/families/{f['id']}", headers=other)).json()["current_user_role"]
        for f in (await client.get("/api/v1/families", headers=other)).json()["families"]
    }
    assert roles == {own_family["id"]: "admin", admin["family"]["id"]: "adult"}

    # the admin of the testers is still locked out of the other family
    assert (await client.get(f"/api/v1/families/{own_family['id']}/goals", headers=admin["headers"])).status_code == 403


# ─── Leaderboard ──────────────────────────────────────────────────


async def test_leaderboard_ranks_members(client, admin):
    family_id = admin["family"]["id"]
    await join_family(client, admin["headers"], family_id, "adult@example.com", "Ada", "adult")
    await client.post(f"/api/v1/families/{family_id}/goals", json={
        "title": "Read 12 books", "time_scale": "monthly",
    }, headers=admin["headers"])

    response = await client.get(f"/api/v1/families/{family_id}/leaderboard", headers=admin["headers"])
    assert response.status_code == 200
    data = response.json()
    assert data["scope"] == "all_time"
    top = data["leaderboard"][0]
    assert top["name"] == "Alex Admin"
    assert top["rank"] == 1
    assert top["points"] > 0
    assert data["leaderboard"][1]["points"] == 0


async def test_leaderboard_rejects_unknown_scope(client, admin):
    response = await client.get(
        f"/api/v1/families/{admin['family']['id']}/leaderboard?scope=forever", headers=admin["headers"],
    )
    assert response.status_code == 422
