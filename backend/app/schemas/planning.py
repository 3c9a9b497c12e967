"""Planning Schemas - daily plans, habits, reflections and periodic reviews.

Invariants:
    - Nested collections (tasks, top_priorities, habit_completions, responses) replace
      the stored ones wholesale when present; omitted means untouched
    - top priority order is 1-3; mood and energy_level are 1-5
    - Habit names are 1-100 chars after stripping
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.domain_types import ReflectionType, ReviewKind


# ─── Daily plans ─────────────────────────────────────────────────

class TaskInput(BaseModel):
    id: UUID | None = None
    title: str = Field(min_length=1, max_length=255)
    completed: bool = False
    position: int | None = Field(None, ge=0)
    goal_id: UUID | None = None


class TopPriorityInput(BaseModel):
    title: str | None = Field(None, max_length=255)
    priority_order: int | None = Field(None, ge=1, le=3)
    completed: bool = False
    goal_id: UUID | None = None


class HabitCompletionInput(BaseModel):
    habit_id: UUID
    completed: bool = False


class DailyPlanUpdate(BaseModel):
    intention: str | None = None
    shutdown_shipped: str | None = None
    shutdown_blocked: str | None = None
    tasks: list[TaskInput] | None = None
    top_priorities: list[TopPriorityInput] | None = Field(None, max_length=3)
    habit_completions: list[HabitCompletionInput] | None = None


# ─── Habits ──────────────────────────────────────────────────────

class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    position: int | None = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name can't be blank")
        return v


class HabitUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    position: int | None = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("name can't be blank")
        return v.strip() if v else v


# ─── Reflections ─────────────────────────────────────────────────

class ReflectionResponseInput(BaseModel):
    prompt: str = Field(min_length=1, max_length=500)
    response: str | None = None
    position: int | None = Field(None, ge=0)


class ReflectionCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    daily_plan_id: UUID | None = None
    reflection_type: ReflectionType = ReflectionType.EVENING
    mood: int | None = Field(None, ge=1, le=5)
    energy_level: int | None = Field(None, ge=1, le=5)
    gratitude_items: list[str] | None = None
    completed: bool = False
    responses: list[ReflectionResponseInput] | None = None


class ReflectionUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    reflection_type: ReflectionType | None = None
    mood: int | None = Field(None, ge=1, le=5)
    energy_level: int | None = Field(None, ge=1, le=5)
    gratitude_items: list[str] | None = None
    completed: bool | None = None
    responses: list[ReflectionResponseInput] | None = None


# ─── Reviews ─────────────────────────────────────────────────────

class _ReviewUpdate(BaseModel):
    completed: bool | None = None


class WeeklyReviewUpdate(_ReviewUpdate):
    wins: list[str] | None = None
    challenges: list[str] | None = None
    next_week_priorities: list[str] | None = None
    lessons_learned: str | None = None
    notes: str | None = None


class MonthlyReviewUpdate(_ReviewUpdate):
    highlights: list[str] | None = None
    challenges: list[str] | None = None
    next_month_focus: list[str] | None = None
    lessons_learned: str | None = None


class QuarterlyReviewUpdate(_ReviewUpdate):
    achievements: list[str] | None = None
    obstacles: list[str] | None = None
    next_quarter_objectives: list[str] | None = None
    insights: str | None = None


class AnnualReviewUpdate(_ReviewUpdate):
    year_highlights: list[str] | None = None
    year_challenges: list[str] | None = None
    next_year_themes: list[str] | None = None
    lessons_learned: str | None = None
    word_of_the_year: str | None = Field(None, max_length=50)


REVIEW_UPDATE_SCHEMAS: dict[ReviewKind, type[_ReviewUpdate]] = {
    ReviewKind.WEEKLY: WeeklyReviewUpdate,
    ReviewKind.MONTHLY: MonthlyReviewUpdate,
    ReviewKind.QUARTERLY: QuarterlyReviewUpdate,
    ReviewKind.ANNUAL: AnnualReviewUpdate,
}
