"""Review Periods - calendar anchors and inclusive bounds.

2026-03-01 is a Sunday; 2026-03-04 a Wednesday.
"""

from datetime import date

import pytest

from app.core.clock import sunday_based_weekday
from app.core.domain_types import ReviewKind
from app.core.review_periods import (
    months_in_quarter, normalize_week_start_day, period_bounds, period_start,
    quarter_end_for, quarter_start_for, week_start_for,
)

WEDNESDAY = date(2026, 3, 4)


def test_sunday_based_weekday():
    assert sunday_based_weekday(date(2026, 3, 1)) == 0
    assert sunday_based_weekday(WEDNESDAY) == 3
    assert sunday_based_weekday(date(2026, 3, 7)) == 6


def test_week_start_defaults_to_monday():
    assert week_start_for(WEDNESDAY) == date(2026, 3, 2)


def test_week_start_honours_family_setting():
    assert week_start_for(WEDNESDAY, 0) == date(2026, 3, 1)
    assert week_start_for(WEDNESDAY, 4) == date(2026, 2, 26)


def test_week_start_is_idempotent():
    start = week_start_for(WEDNESDAY, 1)
    assert week_start_for(start, 1) == start


@pytest.mark.parametrize("raw,expected", [(0, 0), ("6", 6), (7, 1), (-1, 1), (None, 1), ("x", 1)])
def test_normalize_week_start_day(raw, expected):
    assert normalize_week_start_day(raw) == expected


def test_quarter_anchors():
    assert quarter_start_for(date(2026, 5, 20)) == date(2026, 4, 1)
    assert quarter_end_for(date(2026, 5, 20)) == date(2026, 6, 30)
    assert quarter_start_for(date(2026, 12, 31)) == date(2026, 10, 1)


def test_period_start_per_kind():
    assert period_start(ReviewKind.WEEKLY, WEDNESDAY) == date(2026, 3, 2)
    assert period_start(ReviewKind.MONTHLY, WEDNESDAY) == date(2026, 3, 1)
    assert period_start(ReviewKind.QUARTERLY, WEDNESDAY) == date(2026, 1, 1)
    assert period_start(ReviewKind.ANNUAL, WEDNESDAY) == date(2026, 1, 1)


def test_period_bounds_are_inclusive():
    assert period_bounds(ReviewKind.WEEKLY, date(2026, 3, 2)) == (date(2026, 3, 2), date(2026, 3, 8))
    assert period_bounds(ReviewKind.MONTHLY, date(2026, 2, 1)) == (date(2026, 2, 1), date(2026, 2, 28))
    assert period_bounds(ReviewKind.MONTHLY, date(2028, 2, 1)) == (date(2028, 2, 1), date(2028, 2, 29))
    assert period_bounds(ReviewKind.ANNUAL, date(2026, 1, 1)) == (date(2026, 1, 1), date(2026, 12, 31))


def test_months_in_quarter():
    assert months_in_quarter(date(2026, 7, 1)) == [
        date(2026, 7, 1), date(2026, 8, 1), date(2026, 9, 1),
    ]
