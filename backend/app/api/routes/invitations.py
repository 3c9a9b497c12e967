"""Invitation Routes - invite, cancel, resend and accept family invitations.

Invariants:
    - Listing is member-only and shows pending invitations (not accepted, not expired)
    - create is for adults and admins; delete is for admins or the original inviter
    - resend extends expires_at by 7 days only when the invitation has already expired
    - accept is optional-auth: without a session and without a `user` payload it answers
      401 with requires_auth and an invitation summary; with a payload it signs in the
      invitation's email (existing account) or registers it (new account)

Design Decisions:
    - The accept endpoint issues tokens when it authenticated the user itself, so a
      brand-new member is signed in by the same request
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_family_context, get_optional_user, require_inviter
from app.core import policies
from app.core.errors import AuthenticationError, PermissionDeniedError
from app.infrastructure.database import get_db
from app.infrastructure.security import verify_password
from app.models.family import Family
from app.models.user import User
from app.schemas.family import InvitationAccept, InvitationCreate
from app.services import auth_service, family_service
from app.services.family_access import FamilyContext

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["invitations"])


@router.get("/families/{family_id}/invitations")
async def list_invitations(
    ctx: FamilyContext = Depends(get_family_context), db: AsyncSession = Depends(get_db),
):
    pending = await family_service.pending_invitations(db, ctx.family.id)
    return {"invitations": [family_service.invitation_to_dict(i, u) for i, u in pending]}


@router.post("/families/{family_id}/invitations", status_code=status.HTTP_201_CREATED)
async def create_invitation(
    body: InvitationCreate,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    require_inviter(ctx)
    invitation = await family_service.create_invitation(db, ctx, body.email, body.role)
    await db.commit()
    return {
        "message": "Invitation sent successfully.",
        "invitation": {
            **family_service.invitation_to_dict(invitation, ctx.user),
            "token": invitation.token,
        },
    }


@router.delete("/families/{family_id}/invitations/{invitation_id}")
async def delete_invitation(
    invitation_id: UUID,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    invitation = await family_service.get_family_invitation(db, ctx.family.id, invitation_id)
    if not policies.can_delete_invitation(ctx.role, invitation.inviter_id, ctx.user.id):
        raise PermissionDeniedError()
    await db.delete(invitation)
    await db.commit()
    return {"message": "Invitation cancelled successfully."}


@router.post("/families/{family_id}/invitations/{invitation_id}/resend")
async def resend_invitation(
    invitation_id: UUID,
    ctx: FamilyContext = Depends(get_family_context),
    db: AsyncSession = Depends(get_db),
):
    require_inviter(ctx)
    invitation = await family_service.get_family_invitation(db, ctx.family.id, invitation_id)
    family_service.resend_invitation(invitation)
    await db.commit()
    inviter = await db.get(User, invitation.inviter_id)
    return {
        "message": "Invitation resent successfully.",
        "invitation": family_service.invitation_to_dict(invitation, inviter),
    }


# ─── Accept ──────────────────────────────────────────────────────

def _auth_required(invitation, family: Family) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={
            "error": "Authentication required",
            "requires_auth": True,
            "invitation": {
                "email": invitation.email,
                "family_name": family.name,
                "role": invitation.role,
            },
        },
    )


async def _user_from_payload(db: AsyncSession, invitation, payload) -> User:
    existing = await auth_service.find_user_by_email(db, invitation.email)
    if existing is not None:
        if not verify_password(payload.password, existing.password_hash):
            raise AuthenticationError("Invalid password")
        return existing
    return await auth_service.register_user(
        db, invitation.email, payload.password, payload.name or "",
    )


@router.post("/invitations/{token}/accept")
async def accept_invitation(
    token: str,
    body: InvitationAccept | None = Body(None),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    invitation = await family_service.find_acceptable_invitation(db, token)
    issued_tokens = None
    if user is None:
        if body is None or body.user is None:
            return _auth_required(invitation, await db.get(Family, invitation.family_id))
        user = await _user_from_payload(db, invitation, body.user)
        issued_tokens = await auth_service.issue_tokens(db, user)

    family, is_first_action = await family_service.accept_invitation(db, invitation, user)
    await db.commit()

    response = {
        "message": "Invitation accepted successfully.",
        "family": {"id": str(family.id), "name": family.name, "timezone": family.timezone},
        "is_first_action": is_first_action,
    }
    if issued_tokens:
        response.update(user=auth_service.user_to_dict(user), **issued_tokens)
    return response
