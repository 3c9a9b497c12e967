"""Points Service - writes the points ledger and answers totals, weekly sums and breakdowns.

Invariants:
    - award() writes nothing for unknown activities (0 points)
    - this_week counts entries since Monday 00:00 UTC of the current ISO week
    - Callers own the transaction: award() only adds to the session

Design Decisions:
    - Aggregates computed in SQL (SUM / GROUP BY) rather than loading the ledger
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.points_table import label_for, points_for
from app.models.gamification import PointsLedgerEntry

logger = logging.getLogger(__name__)


def week_start_utc(now: datetime | None = None) -> datetime:
    now = now or utcnow()
    monday = now.date() - timedelta(days=now.weekday())
    return datetime(monday.year, monday.month, monday.day, tzinfo=now.tzinfo)


async def award(
    db: AsyncSession, user_id: UUID, activity_type: str, metadata: dict | None = None,
) -> PointsLedgerEntry | None:
    points = points_for(activity_type)
    if points <= 0:
        return None
    entry = PointsLedgerEntry(
        user_id=user_id,
        points=points,
        activity_type=str(getattr(activity_type, "value", activity_type)),
        details={k: v for k, v in (metadata or {}).items() if v is not None},
    )
    db.add(entry)
    logger.info(
        f"Awarded {points} points for {entry.activity_type}", extra={"user_id": user_id},
    )
    return entry


async def total_points(db: AsyncSession, user_id: UUID, since: datetime | None = None) -> int:
    query = select(func.coalesce(func.sum(PointsLedgerEntry.points), 0)).where(
        PointsLedgerEntry.user_id == user_id,
    )
    if since is not None:
        query = query.where(PointsLedgerEntry.created_at >= since)
    return int((await db.execute(query)).scalar_one())


async def weekly_points(db: AsyncSession, user_id: UUID, now: datetime | None = None) -> int:
    return await total_points(db, user_id, since=week_start_utc(now))


async def breakdown(db: AsyncSession, user_id: UUID) -> dict[str, int]:
    result = await db.execute(
        select(PointsLedgerEntry.activity_type, func.sum(PointsLedgerEntry.points))
        .where(PointsLedgerEntry.user_id == user_id)
        .group_by(PointsLedgerEntry.activity_type),
    )
    return {activity: int(total) for activity, total in result.all()}


async def recent_activity(db: AsyncSession, user_id: UUID, limit: int) -> list[dict]:
    result = await db.execute(
        select(PointsLedgerEntry)
        .where(PointsLedgerEntry.user_id == user_id)
        .order_by(PointsLedgerEntry.created_at.desc())
        .limit(limit),
    )
    return [
        {
            "id": str(e.id),
            "points": e.points,
            "activity_type": e.activity_type,
            "activity_label": label_for(e.activity_type),
            "metadata": e.details or {},
            "created_at": e.created_at.isoformat(),
        }
        for e in result.scalars().all()
    ]


async def points_by_user(
    db: AsyncSession, user_ids: list[UUID], since: datetime | None = None,
) -> dict[UUID, int]:
    if not user_ids:
        return {}
    query = (
        select(PointsLedgerEntry.user_id, func.sum(PointsLedgerEntry.points))
        .where(PointsLedgerEntry.user_id.in_(user_ids))
        .group_by(PointsLedgerEntry.user_id)
    )
    if since is not None:
        query = query.where(PointsLedgerEntry.created_at >= since)
    result = await db.execute(query)
    totals = {uid: int(total) for uid, total in result.all()}
    return {uid: totals.get(uid, 0) for uid in user_ids}
