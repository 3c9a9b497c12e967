"""API Test Helpers - account/family bootstrap and a scripted AI client for route tests.

Invariants:
    - register() always returns Bearer headers for a freshly created account
    - FakeAIClient replies FIFO; an exception instance in the queue is raised instead

Design Decisions:
    - Plain async functions over fixtures: tests compose several members per family
    - FakeAIClient mirrors only complete_text, the one method the services call
"""

from app.core.errors import AnthropicAPIError

PASSWORD = "correct-horse-battery"


class FakeAIClient:
    """Stands in for ResilientAnthropicClient.complete_text."""

    def __init__(self):
        self.replies: list = []
        self.calls: list[dict] = []

    def reply(self, *items) -> "FakeAIClient":
        self.replies.extend(items)
        return self

    def fail(self, message: str = "overloaded") -> "FakeAIClient":
        self.replies.append(AnthropicAPIError(message, "overloaded"))
        return self

    async def complete_text(self, *, system, prompt, max_tokens=None, context=None):
        self.calls.append({"system": system, "prompt": prompt, "max_tokens": max_tokens})
        if not self.replies:
            raise AnthropicAPIError("no scripted reply", "test")
        item = self.replies.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register(client, email: str, name: str = "Test User") -> dict[str, str]:
    """Register a user and return auth headers."""
    response = await client.post("/api/v1/auth/register", json={
        "email": email, "name": name, "password": PASSWORD,
    })
    assert response.status_code == 201, response.text
    return bearer(response.json()["access_token"])


async def create_family(client, headers, name: str = "The Testers", timezone: str = "UTC") -> dict:
    response = await client.post("/api/v1/families", json={
        "name": name, "timezone": timezone,
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["family"]


async def join_family(client, admin_headers, family_id: str, email: str, name: str, role: str) -> dict:
    """Invite, register and accept; returns the new member's auth headers."""
    invite = await client.post(f"/api/v1/families/{family_id}/invitations", json={
        "email": email, "role": role,
    }, headers=admin_headers)
    assert invite.status_code == 201, invite.text
    token = invite.json()["invitation"]["token"]
    headers = await register(client, email, name)
    accept = await client.post(f"/api/v1/invitations/{token}/accept", headers=headers)
    assert accept.status_code == 200, accept.text
    return headers
