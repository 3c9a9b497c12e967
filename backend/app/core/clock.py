"""Clock Helpers - timezone-aware "now" and "today" for family-local calculations.

Invariants:
    - utcnow() always returns an aware UTC datetime
    - ensure_utc() never changes the instant of an aware datetime
    - Unknown timezone names fall back to UTC (families validated on write)

Design Decisions:
    - zoneinfo over pytz: stdlib since 3.9, correct DST arithmetic
    - Every function accepts an explicit `now` so core logic stays deterministic under test
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError, available_timezones
from functools import lru_cache


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@lru_cache(maxsize=1)
def _known_zones() -> frozenset[str]:
    return frozenset(available_timezones())


def is_valid_timezone(name: str) -> bool:
    return name == "UTC" or name in _known_zones()


def zone_for(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def local_now(tz_name: str | None, now: datetime | None = None) -> datetime:
    """Current wall-clock time in the given zone."""
    return (ensure_utc(now) or utcnow()).astimezone(zone_for(tz_name))


def local_today(tz_name: str | None, now: datetime | None = None) -> date:
    return local_now(tz_name, now).date()


def sunday_based_weekday(day: date) -> int:
    """Weekday with Sunday=0 ... Saturday=6."""
    return (day.weekday() + 1) % 7
