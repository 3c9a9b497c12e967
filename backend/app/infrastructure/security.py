"""Security Primitives - bcrypt password hashing, JWT access tokens and opaque refresh tokens.

Invariants:
    - Passwords never stored or logged in plain text (bcrypt hash only)
    - Access tokens carry sub (user id), type="access", iat, exp
    - Refresh tokens are random URL-safe strings; only their SHA-256 hex digest is persisted
    - Every decoding failure raises AuthenticationError (401)

Design Decisions:
    - bcrypt directly instead of passlib: one maintained dependency, no deprecated shims
    - Secrets and TTLs read from Settings (pydantic-settings), not os.environ
"""

import hashlib
import secrets
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import bcrypt
import jwt

from app.config import get_settings
from app.core.clock import utcnow
from app.core.errors import AuthenticationError


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise ValueError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_access_token(user_id: UUID, now: datetime | None = None) -> str:
    settings = get_settings()
    issued_at = now or utcnow()
    payload = {
        "sub": str(user_id),
        "type": "access",
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(minutes=settings.access_token_expire_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthenticationError("Access token is empty.")
    settings = get_settings()
    try:
        payload = jwt.decode(raw, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Access token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid access token.") from exc

    if str(payload.get("type") or "").lower() != "access":
        raise AuthenticationError("Token is not an access token.")
    return payload


def build_refresh_token() -> str:
    return secrets.token_urlsafe(48)


def hash_refresh_token(raw_refresh_token: str) -> str:
    token = (raw_refresh_token or "").encode("utf-8")
    if not token:
        raise AuthenticationError("Refresh token is empty.")
    return hashlib.sha256(token).hexdigest()


def refresh_token_expiry(now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(days=get_settings().refresh_token_expire_days)


def build_invitation_token() -> str:
    return secrets.token_urlsafe(24)
