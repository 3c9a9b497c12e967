"""Notification Schemas - delivery preferences, phone numbers, device tokens and feedback.

Invariants:
    - Preference times are "HH:MM" (00-23:00-59); weekly_review_day is 0-6 (Sunday=0)
    - Phone numbers are E.164 (checked in the route so the error carries the domain message)
    - Feedback title is required except for nps and quick_feedback reports
    - Feedback severity and triage status are closed vocabularies (FeedbackSeverity, FeedbackStatus)
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.domain_types import (
    DevicePlatform, FeedbackReportType, FeedbackSeverity, FeedbackStatus,
)
from app.core.reminder_schedule import is_valid_time

TITLE_OPTIONAL_REPORTS = frozenset({FeedbackReportType.NPS.value, FeedbackReportType.QUICK_FEEDBACK.value})


class NotificationPreferenceUpdate(BaseModel):
    in_app: bool | None = None
    email: bool | None = None
    push: bool | None = None
    sms: bool | None = None
    morning_planning: bool | None = None
    evening_reflection: bool | None = None
    weekly_review: bool | None = None
    morning_planning_time: str | None = None
    evening_reflection_time: str | None = None
    weekly_review_time: str | None = None
    weekly_review_day: int | None = Field(None, ge=0, le=6)
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None

    @field_validator(
        "morning_planning_time", "evening_reflection_time", "weekly_review_time",
        "quiet_hours_start", "quiet_hours_end",
    )
    @classmethod
    def check_time(cls, v: str | None) -> str | None:
        if v is not None and not is_valid_time(v):
            raise ValueError("must be in HH:MM format")
        return v


class PhoneNumberUpdate(BaseModel):
    phone_number: str = Field(min_length=1, max_length=20)


class DeviceTokenCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    token: str = Field(min_length=1, max_length=500)
    platform: DevicePlatform
    device_name: str | None = Field(None, max_length=100)


class DeviceTokenUnregister(BaseModel):
    token: str = Field(min_length=1, max_length=500)


class FeedbackCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    report_type: FeedbackReportType
    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=10_000)
    severity: FeedbackSeverity | None = None
    context_data: dict | None = None
    allow_contact: bool = False
    contact_email: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def require_title(self):
        if self.report_type not in TITLE_OPTIONAL_REPORTS and not (self.title or "").strip():
            raise ValueError("title can't be blank")
        return self


class FeedbackAdminUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    status: FeedbackStatus | None = None
    assigned_to_id: UUID | None = None
    internal_notes: str | None = Field(None, max_length=10_000)
    duplicate_of_id: UUID | None = None
