"""Feedback Routes - bug reports, feature requests, NPS answers and admin triage.

Invariants:
    - create is optional-auth: anonymous reports are stored with user_id NULL
    - show is owner-only; anonymous reports and other users' reports -> 404
    - /eligibility, /dismiss_nps and /nps_follow_up are registered before /{report_id}
    - Every /admin/feedback route answers 403 unless the caller administers a family
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, get_optional_user
from app.core.domain_types import FeedbackReportType, FeedbackSeverity, FeedbackStatus
from app.core.errors import ResourceNotFoundError
from app.core.feedback_rules import nps_category, nps_follow_up_question
from app.infrastructure.database import get_db
from app.models.feedback import FeedbackReport
from app.models.user import User
from app.schemas.notification import FeedbackAdminUpdate, FeedbackCreate
from app.services import feedback_service
from app.services.feedback_service import FeedbackFilters

router = APIRouter(prefix="/api/v1/feedback", tags=["feedback"])
admin_router = APIRouter(prefix="/api/v1/admin/feedback", tags=["feedback"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_feedback(
    body: FeedbackCreate,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    report = await feedback_service.create_report(db, user, body.model_dump())
    await db.commit()
    return {"feedback_report": feedback_service.report_to_dict(report)}


# ─── NPS ─────────────────────────────────────────────────────────

@router.get("/eligibility")
async def get_eligibility(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    return await feedback_service.nps_status(db, user)


@router.post("/dismiss_nps")
async def dismiss_nps(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
):
    next_eligible = feedback_service.dismiss_nps(user)
    await db.commit()
    return {"success": True, "next_eligible_date": next_eligible.date().isoformat()}


@router.get("/nps_follow_up")
async def get_nps_follow_up(
    score: int = Query(..., ge=0, le=10),
    user: User = Depends(get_current_user),
):
    return {"question": nps_follow_up_question(score), "category": nps_category(score)}


@router.get("/{report_id}")
async def get_feedback(
    report_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    report = await db.get(FeedbackReport, report_id)
    if report is None or report.user_id != user.id:
        raise ResourceNotFoundError("FeedbackReport", str(report_id))
    return {"feedback_report": feedback_service.report_to_dict(report)}


# ─── Admin triage ────────────────────────────────────────────────

async def get_feedback_admin(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db),
) -> User:
    await feedback_service.require_feedback_admin(db, user)
    return user


@admin_router.get("")
async def list_feedback(
    report_type: FeedbackReportType | None = Query(None, alias="type"),
    report_status: FeedbackStatus | None = Query(None, alias="status"),
    severity: FeedbackSeverity | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(feedback_service.DEFAULT_PER_PAGE, ge=1),
    admin: User = Depends(get_feedback_admin),
    db: AsyncSession = Depends(get_db),
):
    filters = FeedbackFilters(
        report_type=report_type.value if report_type else None,
        status=report_status.value if report_status else None,
        severity=severity.value if severity else None,
        start_date=start_date,
        end_date=end_date,
    )
    reports, meta = await feedback_service.list_reports(db, filters, page, per_page)
    return {
        "feedback_reports": [await feedback_service.admin_report_to_dict(db, r) for r in reports],
        "meta": meta,
    }


@admin_router.get("/{report_id}")
async def show_feedback(
    report_id: UUID,
    admin: User = Depends(get_feedback_admin),
    db: AsyncSession = Depends(get_db),
):
    report = await feedback_service.get_report(db, report_id)
    return {"feedback_report": await feedback_service.admin_report_to_dict(db, report, detailed=True)}


@admin_router.patch("/{report_id}")
async def update_feedback(
    report_id: UUID,
    body: FeedbackAdminUpdate,
    admin: User = Depends(get_feedback_admin),
    db: AsyncSession = Depends(get_db),
):
    report = await feedback_service.get_report(db, report_id)
    await feedback_service.update_report(db, report, body.model_dump(exclude_unset=True))
    await db.commit()
    data = await feedback_service.admin_report_to_dict(db, report, detailed=True)
    return {"message": "Feedback report updated successfully.", "feedback_report": data}
