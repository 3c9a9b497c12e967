"""Family Access - loads families and memberships and turns policy failures into HTTP errors.

Invariants:
    - Missing family -> 404 with FAMILY_NOT_FOUND_MESSAGE (never 403: no existence leak)
    - Existing family, caller not a member -> 403
    - FamilyContext is only constructed for members

Design Decisions:
    - Policy predicates stay pure in core/policies.py; this module is the IO half
    - FamilyContext bundles family + membership so routes never re-query the role
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import MembershipRole
from app.core.errors import ErrorContext, PermissionDeniedError, ResourceNotFoundError
from app.core.review_periods import normalize_week_start_day
from app.models.family import Family, FamilyMembership
from app.models.user import User

FAMILY_NOT_FOUND_MESSAGE = "This family doesn't exist or you don't have access to it."
NOT_A_MEMBER_MESSAGE = "You are not a member of this family."


@dataclass
class FamilyContext:
    family: Family
    membership: FamilyMembership
    user: User

    @property
    def role(self) -> MembershipRole:
        return MembershipRole(self.membership.role)

    @property
    def timezone(self) -> str:
        return self.family.timezone or "UTC"

    @property
    def week_start_day(self) -> int:
        return normalize_week_start_day((self.family.settings or {}).get("week_start_day"))


def family_not_found(family_id: UUID) -> ResourceNotFoundError:
    return ResourceNotFoundError(
        "Family", str(family_id), FAMILY_NOT_FOUND_MESSAGE,
        context=ErrorContext(family_id=str(family_id)),
    )


async def get_family_or_404(db: AsyncSession, family_id: UUID) -> Family:
    family = await db.get(Family, family_id)
    if not family:
        raise family_not_found(family_id)
    return family


async def get_membership(
    db: AsyncSession, family_id: UUID, user_id: UUID,
) -> FamilyMembership | None:
    result = await db.execute(
        select(FamilyMembership).where(
            FamilyMembership.family_id == family_id,
            FamilyMembership.user_id == user_id,
        ),
    )
    return result.scalar_one_or_none()


async def require_member(db: AsyncSession, family_id: UUID, user: User) -> FamilyContext:
    family = await get_family_or_404(db, family_id)
    membership = await get_membership(db, family_id, user.id)
    if not membership:
        raise PermissionDeniedError(
            NOT_A_MEMBER_MESSAGE, context=ErrorContext(family_id=str(family_id)),
        )
    return FamilyContext(family=family, membership=membership, user=user)


async def first_family(db: AsyncSession, user_id: UUID) -> Family | None:
    """The earliest family the user joined; its timezone anchors user-level dates."""
    result = await db.execute(
        select(Family)
        .join(FamilyMembership, FamilyMembership.family_id == Family.id)
        .where(FamilyMembership.user_id == user_id)
        .order_by(FamilyMembership.created_at)
        .limit(1),
    )
    return result.scalar_one_or_none()


async def user_timezone(db: AsyncSession, user_id: UUID) -> str:
    family = await first_family(db, user_id)
    return family.timezone if family and family.timezone else "UTC"


async def family_member_ids(db: AsyncSession, family_id: UUID) -> list[UUID]:
    result = await db.execute(
        select(FamilyMembership.user_id).where(FamilyMembership.family_id == family_id),
    )
    return list(result.scalars().all())
