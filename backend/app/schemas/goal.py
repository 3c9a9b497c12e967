"""Goal Schemas - goal create/update payloads and reordering.

Invariants:
    - title 1-255 chars, stripped; progress 0-100
    - time_scale, status and visibility are validated against the domain enums
    - Enum fields dump as their plain string values (use_enum_values)
"""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.domain_types import GoalStatus, GoalVisibility, TimeScale


class _GoalFields(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    description: str | None = Field(None, max_length=10_000)
    specific: str | None = None
    measurable: str | None = None
    achievable: str | None = None
    relevant: str | None = None
    time_bound: str | None = None
    progress: int | None = Field(None, ge=0, le=100)
    due_date: date | None = None
    position: int | None = Field(None, ge=0)
    parent_id: UUID | None = None
    assignee_ids: list[UUID] | None = None


class GoalCreate(_GoalFields):
    title: str = Field(min_length=1, max_length=255)
    time_scale: TimeScale = TimeScale.ANNUAL
    status: GoalStatus = GoalStatus.NOT_STARTED
    visibility: GoalVisibility = GoalVisibility.FAMILY
    generate_sub_goals: bool | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title can't be blank")
        return v


class GoalUpdate(_GoalFields):
    title: str | None = Field(None, min_length=1, max_length=255)
    time_scale: TimeScale | None = None
    status: GoalStatus | None = None
    visibility: GoalVisibility | None = None
    is_draft: bool | None = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("title can't be blank")
        return v.strip() if v else v


class PositionItem(BaseModel):
    id: UUID
    position: int = Field(ge=0)


class PositionsUpdate(BaseModel):
    positions: list[PositionItem] = Field(min_length=1)
