"""Auth routes - registration, login, refresh rotation, logout, bearer checks."""

from tests.services.api_helpers import PASSWORD, bearer, register


async def test_register_returns_user_and_token_pair(client):
    response = await client.post("/api/v1/auth/register", json={
        "email": "  Sam@Example.com ", "name": "Sam", "password": PASSWORD,
    })
    assert response.status_code == 201
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"] and data["refresh_token"]
    assert data["user"]["email"] == "sam@example.com"
    assert data["user"]["phone_verified"] is False
    assert "password_hash" not in data["user"]


async def test_register_rejects_duplicate_email(client):
    await register(client, "dup@example.com")
    response = await client.post("/api/v1/auth/register", json={
        "email": "DUP@example.com", "name": "Again", "password": PASSWORD,
    })
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_register_validates_payload(client):
    response = await client.post("/api/v1/auth/register", json={
        "email": "not-an-email", "name": "X", "password": "short",
    })
    assert response.status_code == 422
    assert response.json()["error"]["details"]


async def test_login_with_wrong_password_is_401(client):
    await register(client, "login@example.com")
    response = await client.post("/api/v1/auth/login", json={
        "email": "login@example.com", "password": "wrong-password",
    })
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


async def test_login_and_me(client):
    await register(client, "me@example.com", "Morgan")
    login = await client.post("/api/v1/auth/login", json={
        "email": "me@example.com", "password": PASSWORD,
    })
    assert login.status_code == 200
    me = await client.get("/api/v1/auth/me", headers=bearer(login.json()["access_token"]))
    assert me.status_code == 200
    assert me.json()["user"]["name"] == "Morgan"


async def test_refresh_rotates_token(client):
    registered = await client.post("/api/v1/auth/register", json={
        "email": "rot@example.com", "name": "Rot", "password": PASSWORD,
    })
    old_refresh = registered.json()["refresh_token"]

    rotated = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert rotated.status_code == 200
    assert rotated.json()["refresh_token"] != old_refresh

    reused = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_refresh})
    assert reused.status_code == 401


async def test_logout_revokes_refresh_token(client):
    registered = await client.post("/api/v1/auth/register", json={
        "email": "out@example.com", "name": "Out", "password": PASSWORD,
    })
    data = registered.json()
    headers = bearer(data["access_token"])

    response = await client.post(
        "/api/v1/auth/logout", json={"refresh_token": data["refresh_token"]}, headers=headers,
    )
    assert response.status_code == 204

    refresh = await client.post("/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]})
    assert refresh.status_code == 401


async def test_missing_or_bad_bearer_is_401(client):
    assert (await client.get("/api/v1/auth/me")).status_code == 401
    assert (await client.get("/api/v1/auth/me", headers={"Authorization": "Token abc"})).status_code == 401
    assert (await client.get("/api/v1/auth/me", headers=bearer("garbage"))).status_code == 401
