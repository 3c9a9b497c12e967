"""Gamification routes and scheduled jobs - streaks, points, badges, reminders, streak resets."""

from datetime import timedelta
from uuid import UUID

from sqlalchemy import select

from app.core.clock import utcnow
from app.jobs.reminders import reset_broken_streaks, send_due_reminders
from app.models.gamification import Streak
from app.models.notification import Notification
from app.services.badge_service import seed_badges
from tests.services.api_helpers import register


class FakeGateway:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    async def send(self, to, body):
        self.sent.append((to, body))
        return f"SM{len(self.sent)}"


async def _user_id(client, headers) -> UUID:
    return UUID((await client.get("/api/v1/auth/me", headers=headers)).json()["user"]["id"])


def _evening_today():
    return utcnow().replace(hour=20, minute=0, second=0, microsecond=0)


# ─── Gamification routes ──────────────────────────────────────────


async def test_new_user_has_three_zero_streaks(client):
    headers = await register(client, "fresh@example.com")
    streaks = (await client.get("/api/v1/users/me/streaks", headers=headers)).json()["streaks"]
    assert {s["streak_type"] for s in streaks} == {"daily_planning", "evening_reflection", "weekly_review"}
    assert all(s["current_count"] == 0 and s["next_milestone"] == 7 for s in streaks)


async def test_points_summary_with_labels(client, admin):
    await client.post(f"/api/v1/families/{admin['family']['id']}/goals", json={
        "title": "Learn piano", "time_scale": "monthly",
    }, headers=admin["headers"])
    data = (await client.get("/api/v1/users/me/points?limit=abc", headers=admin["headers"])).json()
    assert data["points"]["total"] == 40
    assert data["points"]["this_week"] == 40
    assert data["points"]["breakdown"] == {"create_goal": 15, "earn_badge": 25}
    labels = {a["activity_type"]: a["activity_label"] for a in data["recent_activity"]}
    assert set(labels) == {"create_goal", "earn_badge"}
    goal_entry = next(a for a in data["recent_activity"] if a["activity_type"] == "create_goal")
    assert goal_entry["metadata"]["goal_title"] == "Learn piano"


async def test_badge_catalogue_and_earned_summary(client, admin):
    catalogue = (await client.get("/api/v1/badges", headers=admin["headers"])).json()["badges"]
    assert len(catalogue) == 10

    await client.post(f"/api/v1/families/{admin['family']['id']}/goals", json={
        "title": "Learn piano", "time_scale": "monthly",
    }, headers=admin["headers"])
    mine = (await client.get("/api/v1/users/me/badges", headers=admin["headers"])).json()
    assert mine["total_count"] == 10
    assert mine["earned_count"] == 1
    first_goal = next(b for b in mine["badges"] if b["name"] == "first_goal")
    assert first_goal["earned"] is True
    assert first_goal["earned_at"] is not None


async def test_seed_badges_is_idempotent(client, test_db):
    assert await seed_badges(test_db) == 0


# ─── Reminder job ─────────────────────────────────────────────────


async def test_evening_reminder_sent_once_per_day(client, test_db):
    headers = await register(client, "remind@example.com")
    await client.get("/api/v1/users/me/notification_preferences", headers=headers)
    now = _evening_today()

    assert await send_due_reminders(test_db, now=now, gateway=FakeGateway()) == 1
    await test_db.commit()
    assert await send_due_reminders(test_db, now=now + timedelta(seconds=30), gateway=FakeGateway()) == 0

    inbox = (await client.get("/api/v1/notifications", headers=headers)).json()["notifications"]
    assert [n["notification_type"] for n in inbox] == ["reminder"]


async def test_reminder_not_due_at_other_times(client, test_db):
    headers = await register(client, "remind@example.com")
    await client.get("/api/v1/users/me/notification_preferences", headers=headers)
    assert await send_due_reminders(test_db, now=_evening_today() + timedelta(minutes=5), gateway=FakeGateway()) == 0


async def test_disabled_reminder_is_skipped(client, test_db):
    headers = await register(client, "remind@example.com")
    await client.patch("/api/v1/users/me/notification_preferences", json={
        "evening_reflection": False,
    }, headers=headers)
    assert await send_due_reminders(test_db, now=_evening_today(), gateway=FakeGateway()) == 0


async def test_reminder_mirrored_to_sms_when_opted_in(client, test_db):
    headers = await register(client, "texter@example.com")
    await client.put("/api/v1/users/me/phone_number", json={"phone_number": "+14155550123"}, headers=headers)
    await client.patch("/api/v1/users/me/notification_preferences", json={"sms": True}, headers=headers)

    gateway = FakeGateway()
    assert await send_due_reminders(test_db, now=_evening_today(), gateway=gateway) == 1
    await test_db.commit()

    assert len(gateway.sent) == 1
    to, body = gateway.sent[0]
    assert to == "+14155550123"
    status = (await client.get("/api/v1/users/me/phone_number", headers=headers)).json()
    assert status["sms_count_today"] == 1


async def test_reminder_without_sms_opt_in_sends_no_text(client, test_db):
    headers = await register(client, "quiet@example.com")
    await client.put("/api/v1/users/me/phone_number", json={"phone_number": "+14155550199"}, headers=headers)
    await client.get("/api/v1/users/me/notification_preferences", headers=headers)

    gateway = FakeGateway()
    await send_due_reminders(test_db, now=_evening_today(), gateway=gateway)
    assert gateway.sent == []
    notifications = (await test_db.execute(select(Notification))).scalars().all()
    assert len(notifications) == 1


# ─── Streak reset job ─────────────────────────────────────────────


async def test_broken_streaks_reset_but_keep_longest(client, test_db):
    headers = await register(client, "streaky@example.com")
    user_id = await _user_id(client, headers)
    today = utcnow().date()
    test_db.add_all([
        Streak(user_id=user_id, streak_type="daily_planning", current_count=5, longest_count=9,
               last_activity_date=today - timedelta(days=3)),
        Streak(user_id=user_id, streak_type="evening_reflection", current_count=2, longest_count=2,
               last_activity_date=today - timedelta(days=1)),
    ])
    await test_db.commit()

    assert await reset_broken_streaks(test_db) == 1
    await test_db.commit()

    streaks = {
        s["streak_type"]: s
        for s in (await client.get("/api/v1/users/me/streaks", headers=headers)).json()["streaks"]
    }
    assert streaks["daily_planning"]["current_count"] == 0
    assert streaks["daily_planning"]["longest_count"] == 9
    assert streaks["evening_reflection"]["current_count"] == 2
    assert streaks["evening_reflection"]["at_risk"] is True
