"""Family Schemas - families, membership roles and invitations.

Invariants:
    - Family name 1-100 chars after stripping; timezone must be a known IANA zone
    - settings.week_start_day, when given, is 0-6 (Sunday=0)
    - Invitation emails pass the same shape check as registration
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.clock import is_valid_timezone
from app.core.domain_types import MembershipRole
from app.schemas.auth import normalized_email


def _check_timezone(v: str | None) -> str | None:
    if v is not None and not is_valid_timezone(v):
        raise ValueError("is not a valid timezone")
    return v


def _check_settings(v: dict | None) -> dict | None:
    if v is None:
        return v
    day = v.get("week_start_day")
    if day is not None and (not isinstance(day, int) or isinstance(day, bool) or not 0 <= day <= 6):
        raise ValueError("week_start_day must be between 0 and 6")
    return v


class FamilyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    timezone: str = "UTC"
    settings: dict | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name can't be blank")
        return v

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        return _check_timezone(v)

    @field_validator("settings")
    @classmethod
    def check_settings(cls, v):
        return _check_settings(v)


class FamilyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    timezone: str | None = None
    settings: dict | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("name can't be blank")
        return v.strip() if v else v

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v):
        return _check_timezone(v)

    @field_validator("settings")
    @classmethod
    def check_settings(cls, v):
        return _check_settings(v)


class MembershipUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    role: MembershipRole


class InvitationCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    email: str = Field(min_length=3, max_length=255)
    role: MembershipRole = MembershipRole.ADULT

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        return normalized_email(v)


class InvitationUser(BaseModel):
    """Credentials sent by someone accepting an invitation without a session."""
    name: str | None = Field(None, max_length=100)
    password: str = Field(min_length=8, max_length=128)


class InvitationAccept(BaseModel):
    user: InvitationUser | None = None
