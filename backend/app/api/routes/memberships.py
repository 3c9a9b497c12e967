"""Membership Routes - list, re-role and remove family members.

Invariants:
    - Listing is member-only
    - update/destroy are admin-only and never target the admin's own membership (403)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_family_context
from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.family import MembershipUpdate
from app.services import family_service
from app.services.family_access import FamilyContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/families/{family_id}/memberships", tags=["memberships"])


@router.get("")
async def list_memberships(
    ctx: FamilyContext = Depends(get_family_context), db: AsyncSession = Depends(get_db),
):
    members = await family_service.list_members(db, ctx.family.id)
    return {"memberships": [family_service.member_to_dict(m, u) for m, u in members]}


@router.patch("/{membership_id}")
async def update_membership(
    membership_id: UUID,
    body: MembershipUpdate,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    target = await family_service.get_family_membership(db, ctx.family.id, membership_id)
    family_service.change_member_role(ctx, target, body.role)
    await db.commit()
    user = await db.get(User, target.user_id)
    return {
        "message": "Member role updated successfully.",
        "membership": family_service.member_to_dict(target, user),
    }


@router.delete("/{membership_id}")
async def delete_membership(
    membership_id: UUID,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    target = await family_service.get_family_membership(db, ctx.family.id, membership_id)
    await family_service.remove_member(db, ctx, target)
    await db.commit()
    logger.info(
        f"Membership {membership_id} removed",
        extra={"user_id": ctx.user.id, "family_id": ctx.family.id},
    )
    return {"message": "Member removed from family successfully."}
