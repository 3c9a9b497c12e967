"""Account Routes - profile, password, deletion, data export, notification preferences,
phone number and device tokens.

Invariants:
    - Everything here acts on the authenticated user only (/users/me/...)
    - Changing the password revokes every refresh token; deleting the account removes it
    - Phone numbers are E.164 and unique across users; outside production a new
      number is auto-verified
    - Registering a device token the user already has refreshes it (200) instead of
      duplicating it (201 for new tokens)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user
from app.config import get_settings
from app.core.clock import utcnow
from app.core.errors import ResourceNotFoundError, ValidationError
from app.core.sms_rules import is_valid_phone_number, remaining_sms_quota
from app.infrastructure.database import get_db
from app.models.notification import DeviceToken, NotificationPreference
from app.models.user import User
from app.schemas.auth import AccountDelete, PasswordChange, ProfileUpdate
from app.schemas.notification import (
    DeviceTokenCreate, DeviceTokenUnregister, NotificationPreferenceUpdate, PhoneNumberUpdate,
)
from app.services import account_service, auth_service, notification_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users/me", tags=["account"])

DEVICE_TOKEN_NOT_FOUND_MESSAGE = "Device token not found"
PREFERENCE_FIELDS = tuple(NotificationPreferenceUpdate.model_fields)


# ─── Profile ─────────────────────────────────────────────────────

@router.patch("/profile")
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if body.name is not None:
        user.name = body.name.strip()
    if "avatar_url" in body.model_fields_set:
        user.avatar_url = body.avatar_url
    await db.commit()
    return {"user": auth_service.user_to_dict(user)}


@router.patch("/password")
async def change_password(
    body: PasswordChange,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    account_service.change_password(
        user, body.current_password, body.password, body.password_confirmation,
    )
    await account_service.revoke_all_refresh_tokens(db, user)
    await db.commit()
    return {"message": "Password updated successfully"}


@router.delete("")
async def delete_account(
    body: AccountDelete,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await account_service.delete_account(db, user, body.password)
    await db.commit()
    return {"message": "Account deleted successfully"}


@router.get("/export")
async def export_data(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return await account_service.export_user_data(db, user)


# ─── Notification preferences ────────────────────────────────────

def _preference_to_dict(preference: NotificationPreference) -> dict:
    return {field: getattr(preference, field) for field in PREFERENCE_FIELDS}


@router.get("/notification_preferences")
async def get_notification_preferences(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    preference = await notification_service.find_or_create_preference(db, user.id)
    await db.commit()
    return {"notification_preferences": _preference_to_dict(preference)}


@router.patch("/notification_preferences")
async def update_notification_preferences(
    body: NotificationPreferenceUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    preference = await notification_service.find_or_create_preference(db, user.id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(preference, field, value)
    await db.commit()
    return {"notification_preferences": _preference_to_dict(preference)}


# ─── Phone number ────────────────────────────────────────────────

async def _phone_status(db: AsyncSession, user: User) -> dict:
    preference = await notification_service.find_or_create_preference(db, user.id)
    sent_today = await notification_service.sms_count_today(db, user.id)
    return {
        "phone_number": user.phone_number,
        "phone_verified": user.phone_verified,
        "sms_enabled": preference.sms,
        "sms_count_today": sent_today,
        "remaining_sms_quota": remaining_sms_quota(sent_today),
    }


@router.get("/phone_number")
async def get_phone_number(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    data = await _phone_status(db, user)
    await db.commit()
    return data


@router.put("/phone_number")
async def set_phone_number(
    body: PhoneNumberUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    number = body.phone_number.strip()
    if not is_valid_phone_number(number):
        raise ValidationError(
            "Phone number must be in E.164 format (e.g. +14155550123)", field="phone_number",
        )
    taken = await db.scalar(
        select(User.id).where(User.phone_number == number, User.id != user.id),
    )
    if taken is not None:
        raise ValidationError("Phone number has already been taken", field="phone_number")

    if number != user.phone_number:
        user.phone_number = number
        user.phone_verified = not get_settings().is_production
    data = await _phone_status(db, user)
    await db.commit()
    logger.info("Phone number updated", extra={"user_id": user.id})
    return {"message": "Phone number updated successfully.", **data}


@router.delete("/phone_number")
async def delete_phone_number(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    if not user.phone_number:
        raise ResourceNotFoundError("PhoneNumber", str(user.id), "No phone number on file")
    user.phone_number = None
    user.phone_verified = False
    await db.commit()
    return {"message": "Phone number removed successfully."}


# ─── Device tokens ───────────────────────────────────────────────

def _device_token_to_dict(token: DeviceToken) -> dict:
    return {
        "id": str(token.id),
        "token": token.token,
        "platform": token.platform,
        "device_name": token.device_name,
        "last_used_at": token.last_used_at.isoformat() if token.last_used_at else None,
        "created_at": token.created_at.isoformat() if token.created_at else None,
    }


async def _find_token(db: AsyncSession, user_id: UUID, raw: str) -> DeviceToken | None:
    result = await db.execute(
        select(DeviceToken).where(DeviceToken.user_id == user_id, DeviceToken.token == raw),
    )
    return result.scalar_one_or_none()


@router.post("/device_tokens", status_code=status.HTTP_201_CREATED)
async def register_device_token(
    body: DeviceTokenCreate,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = await _find_token(db, user.id, body.token)
    if token is None:
        token = DeviceToken(
            user_id=user.id,
            token=body.token,
            platform=body.platform,
            device_name=body.device_name,
            last_used_at=utcnow(),
        )
        db.add(token)
    else:
        token.platform = body.platform
        token.device_name = body.device_name
        token.last_used_at = utcnow()
        response.status_code = status.HTTP_200_OK
    await db.commit()
    return {"device_token": _device_token_to_dict(token)}


@router.post("/device_tokens/unregister", status_code=status.HTTP_204_NO_CONTENT)
async def unregister_device_token(
    body: DeviceTokenUnregister,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = await _find_token(db, user.id, body.token)
    if token is None:
        raise ResourceNotFoundError("DeviceToken", "unregister", DEVICE_TOKEN_NOT_FOUND_MESSAGE)
    await db.delete(token)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/device_tokens/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_device_token(
    token_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = await db.get(DeviceToken, token_id)
    if token is None or token.user_id != user.id:
        raise ResourceNotFoundError("DeviceToken", str(token_id), DEVICE_TOKEN_NOT_FOUND_MESSAGE)
    await db.delete(token)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
