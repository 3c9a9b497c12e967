"""Gamification Routes - the caller's streaks, points and badges, plus the badge catalogue.

Invariants:
    - GET /users/me/streaks resets broken streaks (family-local today) before reading
    - ?limit= on points falls back to 20 when missing, unparseable or outside 1-100
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user
from app.core.clock import local_today
from app.core.points_table import clamp_recent_limit
from app.infrastructure.database import get_db
from app.models.user import User
from app.services import badge_service, points_service, streak_service
from app.services.family_access import user_timezone

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["gamification"])


@router.get("/users/me/streaks")
async def my_streaks(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    today = local_today(await user_timezone(db, user.id))
    await streak_service.check_and_reset_broken_streaks(db, user.id, today)
    streaks = await streak_service.get_all_streaks(db, user.id)
    await db.commit()
    return {"streaks": [streak_service.streak_to_dict(s, today) for s in streaks]}


@router.get("/users/me/points")
async def my_points(
    limit: str | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {
        "points": {
            "total": await points_service.total_points(db, user.id),
            "this_week": await points_service.weekly_points(db, user.id),
            "breakdown": await points_service.breakdown(db, user.id),
        },
        "recent_activity": await points_service.recent_activity(
            db, user.id, clamp_recent_limit(limit),
        ),
    }


@router.get("/badges")
async def list_badges(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    badges = await badge_service.all_badges(db)
    return {"badges": [badge_service.badge_to_dict(b) for b in badges]}


@router.get("/users/me/badges")
async def my_badges(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return await badge_service.user_badge_summary(db, user.id)
