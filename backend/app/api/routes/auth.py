"""Auth Routes - registration, login, token refresh/logout and the current user.

Invariants:
    - register/login/refresh are public; me requires a bearer token
    - Every successful register/login/refresh returns a fresh access + refresh pair
    - logout revokes the given refresh token and always answers 204
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user
from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, LogoutRequest, RefreshRequest, RegisterRequest
from app.services import auth_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user = await auth_service.register_user(db, body.email, body.password, body.name)
    tokens = await auth_service.issue_tokens(db, user)
    await db.commit()
    return {"user": auth_service.user_to_dict(user), **tokens}


@router.post("/login")
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await auth_service.authenticate(db, body.email, body.password)
    tokens = await auth_service.issue_tokens(db, user)
    await db.commit()
    logger.info("User logged in", extra={"user_id": user.id})
    return {"user": auth_service.user_to_dict(user), **tokens}


@router.post("/refresh")
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Rotate a refresh token: the old one is revoked, a new pair is issued."""
    user, tokens = await auth_service.rotate_refresh_token(db, body.refresh_token)
    await db.commit()
    return {"user": auth_service.user_to_dict(user), **tokens}


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    body: LogoutRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.revoke_refresh_token(db, body.refresh_token)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return {"user": auth_service.user_to_dict(user)}
