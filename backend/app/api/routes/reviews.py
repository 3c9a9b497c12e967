"""Review Routes - one router per review kind (weekly, monthly, quarterly, annual).

Invariants:
    - index lists the caller's reviews of that kind, newest period first
    - current is find-or-create for the period containing family-local today
    - Any member can read a review and its metrics; update/destroy are owner-only

Design Decisions:
    - build_router() stamps out identical routers from REVIEW_KINDS instead of four
      copy-pasted modules; main.py registers the four results explicitly
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_family_context, require_owner
from app.core.domain_types import ReviewKind
from app.infrastructure.database import get_db
from app.schemas.planning import REVIEW_UPDATE_SCHEMAS
from app.services import review_service
from app.services.family_access import FamilyContext

logger = logging.getLogger(__name__)


def build_router(kind: ReviewKind) -> APIRouter:
    cfg = review_service.REVIEW_KINDS[kind]
    update_schema = REVIEW_UPDATE_SCHEMAS[kind]
    key = f"{kind.value}_review"
    router = APIRouter(
        prefix=f"/api/v1/families/{{family_id}}/{kind.value}_reviews", tags=[f"{key}s"],
    )

    @router.get("")
    async def index(
        ctx: FamilyContext = Depends(get_family_context), db: AsyncSession = Depends(get_db),
    ):
        reviews = await review_service.list_reviews(db, cfg, ctx.family.id, ctx.user.id)
        return {f"{key}s": [review_service.review_to_dict(cfg, r) for r in reviews]}

    @router.get("/current")
    async def current(
        ctx: FamilyContext = Depends(get_family_context), db: AsyncSession = Depends(get_db),
    ):
        review = await review_service.current_review(db, cfg, ctx)
        await db.commit()
        return {key: review_service.review_to_dict(cfg, review)}

    @router.get("/{review_id}")
    async def show(
        review_id: UUID,
        ctx: FamilyContext = Depends(get_family_context),
        db: AsyncSession = Depends(get_db),
    ):
        review = await review_service.get_review(db, cfg, ctx.family.id, review_id)
        return {key: review_service.review_to_dict(cfg, review)}

    @router.patch("/{review_id}")
    async def update(
        review_id: UUID,
        body: update_schema,
        ctx: FamilyContext = Depends(get_family_context),
        db: AsyncSession = Depends(get_db),
    ):
        review = await review_service.get_review(db, cfg, ctx.family.id, review_id)
        require_owner(ctx, review.user_id)
        await review_service.update_review(
            db, cfg, review, ctx.user, body.model_dump(exclude_unset=True),
        )
        await db.commit()
        return {key: review_service.review_to_dict(cfg, review)}

    @router.delete("/{review_id}")
    async def destroy(
        review_id: UUID,
        ctx: FamilyContext = Depends(get_family_context),
        db: AsyncSession = Depends(get_db),
    ):
        review = await review_service.get_review(db, cfg, ctx.family.id, review_id)
        require_owner(ctx, review.user_id)
        await db.delete(review)
        await db.commit()
        return {"message": f"{cfg.label} deleted successfully."}

    @router.get("/{review_id}/metrics")
    async def metrics(
        review_id: UUID,
        ctx: FamilyContext = Depends(get_family_context),
        db: AsyncSession = Depends(get_db),
    ):
        review = await review_service.get_review(db, cfg, ctx.family.id, review_id)
        return {"metrics": await review_service.review_metrics(db, cfg, review)}

    return router


weekly_router = build_router(ReviewKind.WEEKLY)
monthly_router = build_router(ReviewKind.MONTHLY)
quarterly_router = build_router(ReviewKind.QUARTERLY)
annual_router = build_router(ReviewKind.ANNUAL)
