"""Family ORM - the tenant boundary: families, their memberships and pending invitations.

Invariants:
    - (family_id, user_id) unique on memberships; a user may belong to several families
    - role is a MembershipRole value, default observer
    - Invitation.token unique; pending = not accepted and not expired
    - settings["week_start_day"] (0-6, Sunday=0) drives weekly review anchors

Design Decisions:
    - settings as JSON: family-level preferences evolve without migrations
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.core.clock import ensure_utc, utcnow
from app.core.domain_types import MembershipRole
from app.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Family(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "families"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    settings: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)


class FamilyMembership(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "family_memberships"
    __table_args__ = (
        UniqueConstraint("family_id", "user_id", name="uq_membership_family_user"),
    )

    family_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MembershipRole.OBSERVER.value,
    )


class Invitation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "invitations"

    family_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    inviter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=MembershipRole.ADULT.value,
    )
    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def is_expired(self, now: datetime | None = None) -> bool:
        return ensure_utc(self.expires_at) <= (now or utcnow())

    @property
    def is_accepted(self) -> bool:
        return self.accepted_at is not None
