"""Leaderboard Service - family ranking by points with streak and badge context."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import LeaderboardScope, StreakType
from app.core.leaderboard import LeaderboardEntry, rank_entries, streak_summary
from app.models.gamification import Streak, UserBadge
from app.services import points_service
from app.services.family_service import list_members


async def family_leaderboard(
    db: AsyncSession, family_id: UUID, scope: LeaderboardScope,
) -> list[LeaderboardEntry]:
    members = [user for _, user in await list_members(db, family_id)]
    user_ids = [u.id for u in members]
    if not user_ids:
        return []

    since = points_service.week_start_utc() if scope == LeaderboardScope.WEEKLY else None
    points = await points_service.points_by_user(db, user_ids, since=since)

    streak_rows = (await db.execute(
        select(Streak.user_id, Streak.streak_type, Streak.current_count)
        .where(Streak.user_id.in_(user_ids)),
    )).all()
    streaks: dict[UUID, dict[str, int]] = {uid: {} for uid in user_ids}
    for uid, streak_type, count in streak_rows:
        streaks[uid][streak_type] = count or 0

    badge_counts = dict((await db.execute(
        select(UserBadge.user_id, func.count(UserBadge.id))
        .where(UserBadge.user_id.in_(user_ids))
        .group_by(UserBadge.user_id),
    )).all())

    streak_types = [t.value for t in StreakType]
    return rank_entries([
        LeaderboardEntry(
            user_id=user.id,
            name=user.name,
            points=points.get(user.id, 0),
            streaks=streak_summary(streaks[user.id], streak_types),
            badges_count=int(badge_counts.get(user.id, 0)),
        )
        for user in members
    ])
