"""Request Dependencies - bearer authentication and family membership resolution for routes.

Invariants:
    - get_current_user raises AuthenticationError (401) for a missing, malformed or invalid token
    - get_optional_user returns None only when no Authorization header is sent;
      a header that is present but invalid still fails with 401
    - get_family_context yields a FamilyContext only for members (404 missing family, 403 non-member)

Design Decisions:
    - Header(default=None) instead of OAuth2PasswordBearer: the login endpoint takes JSON,
      not the OAuth2 form flow
"""

from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import policies
from app.core.errors import AuthenticationError, ErrorContext, PermissionDeniedError
from app.infrastructure.database import get_db
from app.models.user import User
from app.services import auth_service
from app.services.family_access import FamilyContext, require_member


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise AuthenticationError("Missing Authorization header.")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise AuthenticationError("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise AuthenticationError("Authorization must be: Bearer <token>.")
    return token


async def get_current_user(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await auth_service.user_from_access_token(db, _extract_bearer_token(authorization))


async def get_optional_user(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    if not (authorization or "").strip():
        return None
    return await auth_service.user_from_access_token(db, _extract_bearer_token(authorization))


async def get_family_context(
    family_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> FamilyContext:
    return await require_member(db, family_id, user)


def _denied(ctx: FamilyContext) -> PermissionDeniedError:
    return PermissionDeniedError(
        context=ErrorContext(user_id=str(ctx.user.id), family_id=str(ctx.family.id)),
    )


def require_goal_manager(ctx: FamilyContext) -> None:
    if not policies.can_manage_goals(ctx.role):
        raise _denied(ctx)


def require_inviter(ctx: FamilyContext) -> None:
    if not policies.can_invite(ctx.role):
        raise _denied(ctx)


def require_family_admin(ctx: FamilyContext) -> None:
    if not policies.can_manage_family(ctx.role):
        raise _denied(ctx)


def require_owner(ctx: FamilyContext, owner_id: UUID) -> None:
    if not policies.can_modify_owned_record(ctx.role, owner_id, ctx.user.id):
        raise _denied(ctx)
