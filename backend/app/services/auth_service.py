"""Auth Service - account registration, credential checks and refresh-token rotation.

Invariants:
    - Emails are normalized (strip + lowercase) before every lookup and write
    - Login failures never reveal whether the email exists
    - A refresh token is usable once: refresh() revokes it and issues a new pair
    - Only SHA-256 digests of refresh tokens reach the database
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import ensure_utc, utcnow
from app.core.errors import AuthenticationError, ValidationError
from app.infrastructure.security import (
    build_access_token, build_refresh_token, decode_access_token, hash_password,
    hash_refresh_token, refresh_token_expiry, verify_password,
)
from app.models.user import RefreshToken, User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."
INVALID_REFRESH_MESSAGE = "Invalid or expired refresh token."


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def find_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, email: str, password: str, name: str) -> User:
    if await find_user_by_email(db, email):
        raise ValidationError("Email has already been taken", field="email")
    user = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        name=(name or "").strip(),
        first_actions={},
    )
    db.add(user)
    await db.flush()
    logger.info("User registered", extra={"user_id": user.id})
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    user = await find_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
    return user


async def issue_tokens(db: AsyncSession, user: User) -> dict:
    raw_refresh = build_refresh_token()
    db.add(RefreshToken(
        user_id=user.id,
        token_hash=hash_refresh_token(raw_refresh),
        expires_at=refresh_token_expiry(),
    ))
    await db.flush()
    return {
        "access_token": build_access_token(user.id),
        "refresh_token": raw_refresh,
        "token_type": "bearer",
    }


async def _active_refresh_token(db: AsyncSession, raw_token: str) -> RefreshToken:
    result = await db.execute(
        select(RefreshToken).where(RefreshToken.token_hash == hash_refresh_token(raw_token)),
    )
    token = result.scalar_one_or_none()
    if (
        token is None
        or token.revoked_at is not None
        or ensure_utc(token.expires_at) <= utcnow()
    ):
        raise AuthenticationError(INVALID_REFRESH_MESSAGE)
    return token


async def rotate_refresh_token(db: AsyncSession, raw_token: str) -> tuple[User, dict]:
    token = await _active_refresh_token(db, raw_token)
    user = await db.get(User, token.user_id)
    if user is None:
        raise AuthenticationError(INVALID_REFRESH_MESSAGE)
    token.revoked_at = utcnow()
    return user, await issue_tokens(db, user)


async def revoke_refresh_token(db: AsyncSession, raw_token: str) -> None:
    result = await db.execute(
        select(RefreshToken).where(RefreshToken.token_hash == hash_refresh_token(raw_token)),
    )
    token = result.scalar_one_or_none()
    if token is not None and token.revoked_at is None:
        token.revoked_at = utcnow()


async def user_from_access_token(db: AsyncSession, raw_token: str) -> User:
    payload = decode_access_token(raw_token)
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise AuthenticationError("Invalid access token.") from exc
    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User no longer exists.")
    return user


def user_to_dict(user: User) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.name,
        "avatar_url": user.avatar_url,
        "phone_number": user.phone_number,
        "phone_verified": user.phone_verified,
        "first_actions": user.first_actions or {},
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
