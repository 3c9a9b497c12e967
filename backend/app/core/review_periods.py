"""Review Periods - calendar anchors for weekly, monthly, quarterly and annual reviews.

Invariants:
    - week_start_day uses Sunday=0 ... Saturday=6 (default 1 = Monday)
    - Every anchor function is idempotent: anchor(anchor(d)) == anchor(d)
    - period_bounds() returns an inclusive [start, end] date range

Design Decisions:
    - Annual reviews are anchored on Jan 1 internally even though the row stores only the year
"""

import calendar
from datetime import date, timedelta

from app.core.clock import sunday_based_weekday
from app.core.domain_types import ReviewKind

DEFAULT_WEEK_START_DAY = 1


def normalize_week_start_day(value) -> int:
    try:
        day = int(value)
    except (TypeError, ValueError):
        return DEFAULT_WEEK_START_DAY
    return day if 0 <= day <= 6 else DEFAULT_WEEK_START_DAY


def week_start_for(day: date, week_start_day: int = DEFAULT_WEEK_START_DAY) -> date:
    offset = (sunday_based_weekday(day) - week_start_day) % 7
    return day - timedelta(days=offset)


def month_start_for(day: date) -> date:
    return day.replace(day=1)


def quarter_start_for(day: date) -> date:
    first_month = ((day.month - 1) // 3) * 3 + 1
    return date(day.year, first_month, 1)


def days_in_month(month_start: date) -> int:
    return calendar.monthrange(month_start.year, month_start.month)[1]


def month_end_for(day: date) -> date:
    return day.replace(day=days_in_month(day))


def quarter_end_for(day: date) -> date:
    start = quarter_start_for(day)
    last_month = start.month + 2
    return date(start.year, last_month, calendar.monthrange(start.year, last_month)[1])


def period_start(kind: ReviewKind, day: date, week_start_day: int = DEFAULT_WEEK_START_DAY) -> date:
    if kind == ReviewKind.WEEKLY:
        return week_start_for(day, week_start_day)
    if kind == ReviewKind.MONTHLY:
        return month_start_for(day)
    if kind == ReviewKind.QUARTERLY:
        return quarter_start_for(day)
    return date(day.year, 1, 1)


def period_bounds(kind: ReviewKind, start: date) -> tuple[date, date]:
    if kind == ReviewKind.WEEKLY:
        return start, start + timedelta(days=6)
    if kind == ReviewKind.MONTHLY:
        return start, month_end_for(start)
    if kind == ReviewKind.QUARTERLY:
        return start, quarter_end_for(start)
    return date(start.year, 1, 1), date(start.year, 12, 31)


def months_in_quarter(quarter_start: date) -> list[date]:
    return [date(quarter_start.year, quarter_start.month + i, 1) for i in range(3)]
