"""Feedback Rules - NPS survey eligibility, score classification and follow-up questions.

Invariants:
    - A user is NPS-eligible only after 30 days since signup, with at least one daily plan,
      and when not prompted (answered or dismissed) in the last 90 days
    - days_until_nps_eligible is 0 exactly when the user is eligible
    - Whole days only: partial days never count toward a threshold

Design Decisions:
    - Pure functions over explicit `now`; the service layer supplies the plan-exists fact
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from app.core.clock import ensure_utc

NPS_ACTIVE_DAYS_REQUIRED = 30
NPS_QUARTERLY_DAYS = 90

PROMOTER_RANGE = range(9, 11)
PASSIVE_RANGE = range(7, 9)
DETRACTOR_RANGE = range(0, 7)


@dataclass(frozen=True)
class NpsFacts:
    signed_up_at: datetime
    last_prompted_at: datetime | None
    has_daily_plan: bool


def _days_since(moment: datetime, now: datetime) -> int:
    return (now - ensure_utc(moment)) // timedelta(days=1)


def _recently_prompted(facts: NpsFacts, now: datetime) -> bool:
    if facts.last_prompted_at is None:
        return False
    return _days_since(facts.last_prompted_at, now) < NPS_QUARTERLY_DAYS


def nps_eligible(facts: NpsFacts, now: datetime) -> bool:
    if _days_since(facts.signed_up_at, now) < NPS_ACTIVE_DAYS_REQUIRED:
        return False
    if not facts.has_daily_plan:
        return False
    return not _recently_prompted(facts, now)


def days_until_nps_eligible(facts: NpsFacts, now: datetime) -> int:
    """Days left on the signup or quarterly clock; 0 once eligible or when only activity is missing."""
    if nps_eligible(facts, now):
        return 0
    signup_wait = max(NPS_ACTIVE_DAYS_REQUIRED - _days_since(facts.signed_up_at, now), 0)
    if signup_wait:
        return signup_wait
    if facts.last_prompted_at is None:
        return 0
    return max(NPS_QUARTERLY_DAYS - _days_since(facts.last_prompted_at, now), 0)


def next_nps_eligible_at(now: datetime) -> datetime:
    return now + timedelta(days=NPS_QUARTERLY_DAYS)


def nps_category(score: int) -> str:
    if score in PROMOTER_RANGE:
        return "promoter"
    if score in PASSIVE_RANGE:
        return "passive"
    if score in DETRACTOR_RANGE:
        return "detractor"
    return "unknown"


NPS_FOLLOW_UP_QUESTIONS = {
    "promoter": "What do you love most about Hearth?",
    "passive": "What could we improve to make Hearth even better?",
    "detractor": "We're sorry to hear that. What's the biggest issue you're facing?",
    "unknown": "Tell us more about your experience",
}


def nps_follow_up_question(score: int) -> str:
    return NPS_FOLLOW_UP_QUESTIONS[nps_category(score)]
