"""Reminder Schedule - quiet hours, next reminder time and "is it due now" checks.

Invariants:
    - Times are "HH:MM" 24h strings validated by TIME_PATTERN
    - Quiet hours [start, end) may wrap past midnight; start == end means no quiet hours
    - next_reminder_time() never returns a time in the past relative to `now`
    - weekly_review_day uses Sunday=0 ... Saturday=6

Design Decisions:
    - ReminderSettings is a plain dataclass built from the ORM row so the
      scheduling math runs without a database
    - REMINDER_CONTENT is the single source of reminder copy and deep links
"""

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from app.core.clock import sunday_based_weekday
from app.core.domain_types import ReminderType

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

REMINDER_CONTENT: dict[str, tuple[str, str, str]] = {
    ReminderType.MORNING_PLANNING.value: (
        "Time to plan your day",
        "Set your top priorities and intentions for today.",
        "/planner",
    ),
    ReminderType.EVENING_REFLECTION.value: (
        "Evening reflection",
        "Take a few minutes to reflect on your day.",
        "/reflection",
    ),
    ReminderType.WEEKLY_REVIEW.value: (
        "Weekly review time",
        "Look back on your week and plan the next one.",
        "/weekly-review",
    ),
    ReminderType.MONTHLY_REVIEW.value: (
        "Monthly review time",
        "Celebrate the month's wins and set your focus for next month.",
        "/monthly-review",
    ),
    ReminderType.QUARTERLY_REVIEW.value: (
        "Quarterly review time",
        "Step back and check progress on your quarterly goals.",
        "/quarterly-review",
    ),
    ReminderType.ANNUAL_REVIEW.value: (
        "Annual review time",
        "Reflect on your year and choose themes for the next one.",
        "/annual-review",
    ),
}

DAILY_REMINDERS = (ReminderType.MORNING_PLANNING, ReminderType.EVENING_REFLECTION)
SCHEDULED_REMINDERS = DAILY_REMINDERS + (ReminderType.WEEKLY_REVIEW,)


@dataclass(frozen=True)
class ReminderSettings:
    morning_planning: bool = True
    evening_reflection: bool = True
    weekly_review: bool = True
    morning_planning_time: str = "07:00"
    evening_reflection_time: str = "20:00"
    weekly_review_time: str = "18:00"
    weekly_review_day: int = 0
    quiet_hours_start: str = "22:00"
    quiet_hours_end: str = "07:00"


def is_valid_time(value: str | None) -> bool:
    return bool(value) and TIME_PATTERN.match(value) is not None


def parse_time(value: str) -> time:
    match = TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def within_quiet_hours(settings: ReminderSettings, local: datetime | time) -> bool:
    current = _minutes(local if isinstance(local, time) else local.time())
    start = _minutes(parse_time(settings.quiet_hours_start))
    end = _minutes(parse_time(settings.quiet_hours_end))
    if start <= end:
        return start <= current < end
    return current >= start or current < end


def reminder_enabled(settings: ReminderSettings, reminder_type: ReminderType) -> bool:
    return bool(getattr(settings, reminder_type.value, False))


def reminder_time(settings: ReminderSettings, reminder_type: ReminderType) -> time:
    return parse_time(getattr(settings, f"{reminder_type.value}_time"))


def next_reminder_time(
    settings: ReminderSettings, reminder_type: ReminderType, now_local: datetime,
) -> datetime | None:
    """Next wall-clock occurrence of a reminder in the user's zone, or None when disabled."""
    if reminder_type not in SCHEDULED_REMINDERS or not reminder_enabled(settings, reminder_type):
        return None
    at = reminder_time(settings, reminder_type)
    scheduled = now_local.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)

    if reminder_type == ReminderType.WEEKLY_REVIEW:
        days_until = (settings.weekly_review_day - sunday_based_weekday(now_local.date())) % 7
        if days_until == 0 and now_local >= scheduled:
            days_until = 7
        return scheduled + timedelta(days=days_until)

    if now_local >= scheduled:
        return scheduled + timedelta(days=1)
    return scheduled


def is_reminder_due(
    settings: ReminderSettings, reminder_type: ReminderType, now_local: datetime,
) -> bool:
    """True during the minute the reminder is configured for, outside quiet hours."""
    if reminder_type not in SCHEDULED_REMINDERS or not reminder_enabled(settings, reminder_type):
        return False
    at = reminder_time(settings, reminder_type)
    if (now_local.hour, now_local.minute) != (at.hour, at.minute):
        return False
    if reminder_type == ReminderType.WEEKLY_REVIEW:
        if sunday_based_weekday(now_local.date()) != settings.weekly_review_day:
            return False
    return not within_quiet_hours(settings, now_local)
