"""Family Service - family lifecycle, membership management and invitations.

Invariants:
    - A user may belong to several families; memberships are unique per (family, user)
    - The family creator becomes its admin in the same transaction
    - Deleting a family removes every family-scoped row, children first
    - Invitations expire 7 days after creation; resend extends only expired ones
    - Accepting an invitation is rejected (410) once used or expired

Design Decisions:
    - Family deletion issues explicit bulk DELETEs instead of relying on FK
      cascades, so behaviour is identical on PostgreSQL and SQLite
    - Role changes and removals are validated by core.policies.can_change_membership
"""

import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import is_valid_timezone, utcnow
from app.core.domain_types import FirstAction, MembershipRole, NotificationType
from app.core.errors import (
    ConflictError, ErrorContext, InvitationGoneError, PermissionDeniedError,
    ResourceNotFoundError, ValidationError,
)
from app.core.policies import can_change_membership
from app.core.review_periods import normalize_week_start_day
from app.infrastructure.security import build_invitation_token
from app.models.daily_plan import DailyPlan, DailyTask, HabitCompletion, TopPriority
from app.models.family import Family, FamilyMembership, Invitation
from app.models.goal import Goal, GoalAssignment
from app.models.habit import Habit
from app.models.reflection import Reflection, ReflectionResponse
from app.models.review import AnnualReview, MonthlyReview, QuarterlyReview, WeeklyReview
from app.models.user import User
from app.services import notification_service
from app.services.auth_service import find_user_by_email, normalize_email
from app.services.family_access import FamilyContext, get_membership
from app.services.first_actions import record_first_action

logger = logging.getLogger(__name__)

INVITATION_TTL = timedelta(days=7)
INVALID_INVITATION_MESSAGE = (
    "This invitation link is invalid. Please check the link or request a new invitation."
)
EXPIRED_INVITATION_MESSAGE = "This invitation has expired. Please ask for a new one."
USED_INVITATION_MESSAGE = "This invitation has already been used."


# ─── Families ────────────────────────────────────────────────────

def _validated_timezone(timezone: str | None) -> str:
    tz = (timezone or "UTC").strip()
    if not is_valid_timezone(tz):
        raise ValidationError("Timezone is not a valid IANA timezone", field="timezone")
    return tz


def _merged_settings(current: dict | None, updates: dict | None) -> dict:
    merged = dict(current or {})
    for key, value in (updates or {}).items():
        if key == "week_start_day":
            value = normalize_week_start_day(value)
        merged[key] = value
    return merged


async def create_family(
    db: AsyncSession, user: User, name: str, timezone: str | None = None,
    settings: dict | None = None,
) -> tuple[Family, FamilyMembership]:
    family = Family(
        name=name.strip(),
        timezone=_validated_timezone(timezone),
        settings=_merged_settings({}, settings),
    )
    db.add(family)
    await db.flush()
    membership = FamilyMembership(
        family_id=family.id, user_id=user.id, role=MembershipRole.ADMIN.value,
    )
    db.add(membership)
    await db.flush()
    logger.info("Family created", extra={"user_id": user.id, "family_id": family.id})
    return family, membership


def update_family(
    family: Family, name: str | None = None, timezone: str | None = None,
    settings: dict | None = None,
) -> Family:
    if name is not None:
        family.name = name.strip()
    if timezone is not None:
        family.timezone = _validated_timezone(timezone)
    if settings is not None:
        family.settings = _merged_settings(family.settings, settings)
    return family


async def delete_family(db: AsyncSession, family_id: UUID) -> None:
    plan_ids = select(DailyPlan.id).where(DailyPlan.family_id == family_id)
    reflection_ids = select(Reflection.id).where(Reflection.daily_plan_id.in_(plan_ids))
    goal_ids = select(Goal.id).where(Goal.family_id == family_id)

    statements = [
        delete(ReflectionResponse).where(ReflectionResponse.reflection_id.in_(reflection_ids)),
        delete(Reflection).where(Reflection.daily_plan_id.in_(plan_ids)),
        delete(DailyTask).where(DailyTask.daily_plan_id.in_(plan_ids)),
        delete(TopPriority).where(TopPriority.daily_plan_id.in_(plan_ids)),
        delete(HabitCompletion).where(HabitCompletion.daily_plan_id.in_(plan_ids)),
        delete(DailyPlan).where(DailyPlan.family_id == family_id),
        delete(Habit).where(Habit.family_id == family_id),
        delete(GoalAssignment).where(GoalAssignment.goal_id.in_(goal_ids)),
        delete(Goal).where(Goal.family_id == family_id),
        delete(WeeklyReview).where(WeeklyReview.family_id == family_id),
        delete(MonthlyReview).where(MonthlyReview.family_id == family_id),
        delete(QuarterlyReview).where(QuarterlyReview.family_id == family_id),
        delete(AnnualReview).where(AnnualReview.family_id == family_id),
        delete(Invitation).where(Invitation.family_id == family_id),
        delete(FamilyMembership).where(FamilyMembership.family_id == family_id),
        delete(Family).where(Family.id == family_id),
    ]
    for statement in statements:
        await db.execute(statement.execution_options(synchronize_session=False))
    db.expunge_all()
    logger.info("Family deleted", extra={"family_id": family_id})


async def list_user_families(db: AsyncSession, user_id: UUID) -> list[Family]:
    result = await db.execute(
        select(Family)
        .join(FamilyMembership, FamilyMembership.family_id == Family.id)
        .where(FamilyMembership.user_id == user_id)
        .order_by(Family.created_at),
    )
    return list(result.scalars().all())


async def list_members(db: AsyncSession, family_id: UUID) -> list[tuple[FamilyMembership, User]]:
    result = await db.execute(
        select(FamilyMembership, User)
        .join(User, User.id == FamilyMembership.user_id)
        .where(FamilyMembership.family_id == family_id)
        .order_by(FamilyMembership.created_at),
    )
    return [(m, u) for m, u in result.all()]


def family_to_dict(family: Family) -> dict:
    return {
        "id": str(family.id),
        "name": family.name,
        "timezone": family.timezone,
        "settings": family.settings or {},
        "created_at": family.created_at.isoformat() if family.created_at else None,
    }


def member_to_dict(membership: FamilyMembership, user: User) -> dict:
    return {
        "id": str(membership.id),
        "user_id": str(user.id),
        "name": user.name,
        "email": user.email,
        "avatar_url": user.avatar_url,
        "role": membership.role,
        "joined_at": membership.created_at.isoformat() if membership.created_at else None,
    }


# ─── Memberships ─────────────────────────────────────────────────

async def get_family_membership(
    db: AsyncSession, family_id: UUID, membership_id: UUID,
) -> FamilyMembership:
    membership = await db.get(FamilyMembership, membership_id)
    if membership is None or membership.family_id != family_id:
        raise ResourceNotFoundError("Membership", str(membership_id))
    return membership


def _authorize_membership_change(ctx: FamilyContext, target: FamilyMembership) -> None:
    if not can_change_membership(ctx.role, ctx.user.id, target.user_id):
        raise PermissionDeniedError(context=ErrorContext(
            user_id=str(ctx.user.id), family_id=str(ctx.family.id), resource_id=str(target.id),
        ))


def change_member_role(ctx: FamilyContext, target: FamilyMembership, role: MembershipRole) -> None:
    _authorize_membership_change(ctx, target)
    target.role = MembershipRole(role).value
    logger.info(
        f"Membership {target.id} role -> {target.role}",
        extra={"user_id": ctx.user.id, "family_id": ctx.family.id},
    )


async def remove_member(db: AsyncSession, ctx: FamilyContext, target: FamilyMembership) -> None:
    _authorize_membership_change(ctx, target)
    await db.delete(target)


# ─── Invitations ─────────────────────────────────────────────────

async def pending_invitations(db: AsyncSession, family_id: UUID) -> list[tuple[Invitation, User]]:
    result = await db.execute(
        select(Invitation, User)
        .join(User, User.id == Invitation.inviter_id)
        .where(
            Invitation.family_id == family_id,
            Invitation.accepted_at.is_(None),
            Invitation.expires_at > utcnow(),
        )
        .order_by(Invitation.created_at.desc()),
    )
    return [(i, u) for i, u in result.all()]


async def create_invitation(
    db: AsyncSession, ctx: FamilyContext, email: str, role: MembershipRole,
) -> Invitation:
    email = normalize_email(email)
    invitee = await find_user_by_email(db, email)
    if invitee and await get_membership(db, ctx.family.id, invitee.id):
        raise ConflictError("User is already a member of this family")

    invitation = Invitation(
        family_id=ctx.family.id,
        inviter_id=ctx.user.id,
        email=email,
        role=MembershipRole(role).value,
        token=build_invitation_token(),
        expires_at=utcnow() + INVITATION_TTL,
    )
    db.add(invitation)
    await db.flush()
    if invitee:
        await notification_service.notify(
            db, invitee.id,
            "Family invitation",
            f"{ctx.user.name or 'Someone'} invited you to join {ctx.family.name}.",
            f"/invitations/{invitation.token}",
            NotificationType.FAMILY_INVITE,
        )
    logger.info(
        "Invitation created", extra={"user_id": ctx.user.id, "family_id": ctx.family.id},
    )
    return invitation


async def get_family_invitation(
    db: AsyncSession, family_id: UUID, invitation_id: UUID,
) -> Invitation:
    invitation = await db.get(Invitation, invitation_id)
    if invitation is None or invitation.family_id != family_id:
        raise ResourceNotFoundError("Invitation", str(invitation_id), INVALID_INVITATION_MESSAGE)
    return invitation


def resend_invitation(invitation: Invitation) -> Invitation:
    if invitation.is_expired():
        invitation.expires_at = utcnow() + INVITATION_TTL
    logger.info(f"Invitation {invitation.id} resent", extra={"family_id": invitation.family_id})
    return invitation


async def find_acceptable_invitation(db: AsyncSession, token: str) -> Invitation:
    result = await db.execute(select(Invitation).where(Invitation.token == token))
    invitation = result.scalar_one_or_none()
    if invitation is None:
        raise ResourceNotFoundError("Invitation", token, INVALID_INVITATION_MESSAGE)
    if invitation.is_expired():
        raise InvitationGoneError(EXPIRED_INVITATION_MESSAGE)
    if invitation.is_accepted:
        raise InvitationGoneError(USED_INVITATION_MESSAGE)
    return invitation


async def accept_invitation(
    db: AsyncSession, invitation: Invitation, user: User,
) -> tuple[Family, bool]:
    if await get_membership(db, invitation.family_id, user.id):
        raise ConflictError("You are already a member of this family")

    db.add(FamilyMembership(
        family_id=invitation.family_id, user_id=user.id, role=invitation.role,
    ))
    invitation.accepted_at = utcnow()
    is_first_action = record_first_action(user, FirstAction.INVITATION_ACCEPTED)
    await db.flush()
    family = await db.get(Family, invitation.family_id)
    logger.info(
        "Invitation accepted", extra={"user_id": user.id, "family_id": invitation.family_id},
    )
    return family, is_first_action


def invitation_to_dict(invitation: Invitation, inviter: User | None = None) -> dict:
    data = {
        "id": str(invitation.id),
        "email": invitation.email,
        "role": invitation.role,
        "expires_at": invitation.expires_at.isoformat(),
        "created_at": invitation.created_at.isoformat() if invitation.created_at else None,
    }
    if inviter is not None:
        data["inviter"] = {"id": str(inviter.id), "name": inviter.name}
    return data
