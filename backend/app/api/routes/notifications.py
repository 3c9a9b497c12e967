"""Notification Routes - the caller's in-app inbox."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user
from app.core.clock import utcnow
from app.core.errors import ResourceNotFoundError
from app.infrastructure.database import get_db
from app.models.notification import Notification
from app.models.user import User
from app.services import notification_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


def _to_dict(n: Notification) -> dict:
    return {
        "id": str(n.id),
        "title": n.title,
        "body": n.body,
        "link": n.link,
        "notification_type": n.notification_type,
        "read": n.read_at is not None,
        "read_at": n.read_at.isoformat() if n.read_at else None,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


@router.get("")
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(Notification).where(Notification.user_id == user.id)
    if unread_only:
        query = query.where(Notification.read_at.is_(None))
    result = await db.execute(
        query.order_by(Notification.created_at.desc()).limit(limit),
    )
    return {
        "notifications": [_to_dict(n) for n in result.scalars().all()],
        "unread_count": await notification_service.unread_count(db, user.id),
    }


@router.post("/mark_all_read")
async def mark_all_read(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    updated = await notification_service.mark_all_read(db, user.id)
    await db.commit()
    return {"message": "All notifications marked as read.", "updated_count": updated}


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await db.get(Notification, notification_id)
    if notification is None or notification.user_id != user.id:
        raise ResourceNotFoundError("Notification", str(notification_id))
    if notification.read_at is None:
        notification.read_at = utcnow()
    await db.commit()
    return {"notification": _to_dict(notification)}
