"""Domain Types - enums shared across models, schemas and core logic.

Invariants:
    - All valid states encoded as Enums: no raw string matching in domain logic
    - Enum values are the persisted DB strings and the JSON wire values
    - MembershipRole order is meaningful: observer < child < teen < adult < admin

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


# ─── Families ────────────────────────────────────────────────────

class MembershipRole(str, Enum):
    """Family membership roles, lowest to highest privilege."""
    OBSERVER = "observer"
    CHILD = "child"
    TEEN = "teen"
    ADULT = "adult"
    ADMIN = "admin"


# ─── Goals ───────────────────────────────────────────────────────

class TimeScale(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class GoalStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    AT_RISK = "at_risk"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class GoalVisibility(str, Enum):
    """Who may see a goal: creator only, creator + assignees, or the whole family."""
    PERSONAL = "personal"
    SHARED = "shared"
    FAMILY = "family"


SMART_FIELDS = ("specific", "measurable", "achievable", "relevant", "time_bound")


# ─── Planning & Reflection ───────────────────────────────────────

class ReflectionType(str, Enum):
    EVENING = "evening"
    QUICK = "quick"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ReviewKind(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


# ─── Gamification ────────────────────────────────────────────────

class StreakType(str, Enum):
    DAILY_PLANNING = "daily_planning"
    EVENING_REFLECTION = "evening_reflection"
    WEEKLY_REVIEW = "weekly_review"


class ActivityType(str, Enum):
    COMPLETE_TASK = "complete_task"
    COMPLETE_DAILY_PLAN = "complete_daily_plan"
    COMPLETE_REFLECTION = "complete_reflection"
    COMPLETE_WEEKLY_REVIEW = "complete_weekly_review"
    CREATE_GOAL = "create_goal"
    COMPLETE_GOAL = "complete_goal"
    EARN_BADGE = "earn_badge"
    STREAK_MILESTONE = "streak_milestone"


class BadgeCategory(str, Enum):
    GOALS = "goals"
    REFLECTION = "reflection"
    PLANNING = "planning"
    STREAKS = "streaks"


class LeaderboardScope(str, Enum):
    ALL_TIME = "all_time"
    WEEKLY = "weekly"


# ─── Notifications ───────────────────────────────────────────────

class NotificationType(str, Enum):
    GENERAL = "general"
    REMINDER = "reminder"
    BADGE_EARNED = "badge_earned"
    STREAK_MILESTONE = "streak_milestone"
    GOAL_UPDATE = "goal_update"
    FAMILY_INVITE = "family_invite"


class ReminderType(str, Enum):
    MORNING_PLANNING = "morning_planning"
    EVENING_REFLECTION = "evening_reflection"
    WEEKLY_REVIEW = "weekly_review"
    MONTHLY_REVIEW = "monthly_review"
    QUARTERLY_REVIEW = "quarterly_review"
    ANNUAL_REVIEW = "annual_review"


class DevicePlatform(str, Enum):
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


class FirstAction(str, Enum):
    GOAL_CREATED = "goal_created"
    REFLECTION_COMPLETED = "reflection_completed"
    DAILY_PLAN_COMPLETED = "daily_plan_completed"
    INVITATION_ACCEPTED = "invitation_accepted"


# ─── Feedback ────────────────────────────────────────────────────

class FeedbackReportType(str, Enum):
    BUG = "bug"
    FEATURE = "feature"
    GENERAL = "general"
    NPS = "nps"
    QUICK_FEEDBACK = "quick_feedback"


class FeedbackStatus(str, Enum):
    NEW = "new"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class FeedbackSeverity(str, Enum):
    BLOCKER = "blocker"
    MAJOR = "major"
    MINOR = "minor"
    COSMETIC = "cosmetic"
