"""Family Routes - family CRUD, member listing and the family leaderboard.

Invariants:
    - Listing returns only the caller's families
    - show/members/leaderboard are member-only; update/delete are admin-only
    - Creating a family makes the caller its admin, whatever other families they belong to
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, get_family_context, require_family_admin
from app.core.domain_types import LeaderboardScope
from app.core.errors import ValidationError
from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.family import FamilyCreate, FamilyUpdate
from app.services import family_service, leaderboard_service
from app.services.family_access import FamilyContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/families", tags=["families"])


async def _members(db: AsyncSession, family_id: UUID) -> list[dict]:
    return [
        family_service.member_to_dict(m, u)
        for m, u in await family_service.list_members(db, family_id)
    ]


@router.get("")
async def list_families(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    families = await family_service.list_user_families(db, user.id)
    return {"families": [family_service.family_to_dict(f) for f in families]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_family(
    body: FamilyCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a family; the creator becomes its admin."""
    family, membership = await family_service.create_family(
        db, user, body.name, body.timezone, body.settings,
    )
    await db.commit()
    return {
        "message": "Family created successfully.",
        "family": family_service.family_to_dict(family),
        "membership": family_service.member_to_dict(membership, user),
    }


@router.get("/{family_id}")
async def get_family(
    ctx: FamilyContext = Depends(get_family_context), db: AsyncSession = Depends(get_db),
):
    return {
        "family": {
            **family_service.family_to_dict(ctx.family),
            "members": await _members(db, ctx.family.id),
        },
        "current_user_role": ctx.role.value,
    }


@router.patch("/{family_id}")
async def update_family(
    body: FamilyUpdate,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    require_family_admin(ctx)
    family_service.update_family(ctx.family, body.name, body.timezone, body.settings)
    await db.commit()
    return {
        "message": "Family updated successfully.",
        "family": family_service.family_to_dict(ctx.family),
    }


@router.delete("/{family_id}")
async def delete_family(
    ctx: FamilyContext = Depends(get_family_context), db: AsyncSession = Depends(get_db),
):
    require_family_admin(ctx)
    family_id = ctx.family.id
    await family_service.delete_family(db, family_id)
    await db.commit()
    logger.info("Family deleted by admin", extra={"user_id": ctx.user.id, "family_id": family_id})
    return {"message": "Family deleted successfully."}


@router.get("/{family_id}/members")
async def list_members(
    ctx: FamilyContext = Depends(get_family_context), db: AsyncSession = Depends(get_db),
):
    return {"members": await _members(db, ctx.family.id)}


@router.get("/{family_id}/leaderboard")
async def leaderboard(
    scope: str = Query(LeaderboardScope.ALL_TIME.value),
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    """Family ranking by points (all_time or weekly)."""
    try:
        parsed_scope = LeaderboardScope(scope)
    except ValueError as exc:
        raise ValidationError(
            f"Invalid scope '{scope}'. Must be one of: "
            f"{', '.join(s.value for s in LeaderboardScope)}",
            field="scope",
        ) from exc
    entries = await leaderboard_service.family_leaderboard(db, ctx.family.id, parsed_scope)
    return {
        "scope": parsed_scope.value,
        "leaderboard": [entry.to_dict() for entry in entries],
    }
