"""ORM Models - SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Family is the tenant boundary; every shared entity carries family_id

Design Decisions:
    - One file per aggregate for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.user import User, RefreshToken  # noqa: F401
from app.models.family import Family, FamilyMembership, Invitation  # noqa: F401
from app.models.goal import Goal, GoalAssignment  # noqa: F401
from app.models.habit import Habit  # noqa: F401
from app.models.daily_plan import DailyPlan, DailyTask, TopPriority, HabitCompletion  # noqa: F401
from app.models.reflection import Reflection, ReflectionResponse  # noqa: F401
from app.models.review import WeeklyReview, MonthlyReview, QuarterlyReview, AnnualReview  # noqa: F401
from app.models.gamification import Streak, Badge, UserBadge, PointsLedgerEntry  # noqa: F401
from app.models.notification import (  # noqa: F401
    Notification, NotificationPreference, DeviceToken, SmsLog,
)
from app.models.feedback import FeedbackReport  # noqa: F401
