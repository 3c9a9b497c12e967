"""Feedback Service - report intake, NPS survey scheduling and admin triage.

Invariants:
    - Answering an NPS survey (report_type nps) or dismissing it both restart the
      90-day clock through user.last_nps_prompt_date
    - A quick_feedback report carrying context_data.feature is remembered once per
      feature in first_actions, so the client stops asking
    - Triage is open to users who administer at least one family
    - Moving a report to resolved stamps resolved_at once; a report cannot be a
      duplicate of itself

Design Decisions:
    - Eligibility arithmetic lives in core.feedback_rules; this module gathers the facts
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.domain_types import FeedbackReportType, FeedbackStatus, MembershipRole
from app.core.errors import PermissionDeniedError, ResourceNotFoundError, ValidationError
from app.core.feedback_rules import (
    NpsFacts, days_until_nps_eligible, next_nps_eligible_at, nps_eligible,
)
from app.models.daily_plan import DailyPlan
from app.models.family import FamilyMembership
from app.models.feedback import FeedbackReport
from app.models.user import User
from app.services.first_actions import record_feature_feedback

logger = logging.getLogger(__name__)

ADMIN_REQUIRED_MESSAGE = "Admin access required"
DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


# ─── Intake ──────────────────────────────────────────────────────

async def create_report(db: AsyncSession, user: User | None, fields: dict) -> FeedbackReport:
    context_data = fields.get("context_data") or {}
    allow_contact = fields.get("allow_contact", False)
    report = FeedbackReport(
        user_id=user.id if user else None,
        report_type=fields["report_type"],
        title=(fields.get("title") or "").strip() or None,
        description=fields.get("description"),
        severity=fields.get("severity"),
        status=FeedbackStatus.NEW.value,
        context_data=context_data,
        allow_contact=allow_contact,
        contact_email=fields.get("contact_email") or (user.email if user and allow_contact else None),
    )
    db.add(report)

    if user is not None:
        if report.report_type == FeedbackReportType.NPS.value:
            user.last_nps_prompt_date = utcnow()
        feature = context_data.get("feature")
        if report.report_type == FeedbackReportType.QUICK_FEEDBACK.value and feature:
            record_feature_feedback(user, str(feature))

    await db.flush()
    logger.info(
        f"Feedback report {report.id} ({report.report_type}) received",
        extra={"user_id": user.id if user else None},
    )
    return report


# ─── NPS scheduling ──────────────────────────────────────────────

async def _has_daily_plan(db: AsyncSession, user_id: UUID) -> bool:
    return bool(await db.scalar(select(exists().where(DailyPlan.user_id == user_id))))


async def nps_status(db: AsyncSession, user: User, now: datetime | None = None) -> dict:
    now = now or utcnow()
    facts = NpsFacts(
        signed_up_at=user.created_at,
        last_prompted_at=user.last_nps_prompt_date,
        has_daily_plan=await _has_daily_plan(db, user.id),
    )
    return {
        "nps_eligible": nps_eligible(facts, now),
        "nps_follow_up_question": None,
        "days_until_nps_eligible": days_until_nps_eligible(facts, now),
        "last_nps_date": user.last_nps_prompt_date.isoformat() if user.last_nps_prompt_date else None,
    }


def dismiss_nps(user: User, now: datetime | None = None) -> datetime:
    now = now or utcnow()
    user.last_nps_prompt_date = now
    logger.info("NPS survey dismissed", extra={"user_id": user.id})
    return next_nps_eligible_at(now)


# ─── Triage ──────────────────────────────────────────────────────

async def require_feedback_admin(db: AsyncSession, user: User) -> None:
    is_admin = await db.scalar(select(exists().where(
        FamilyMembership.user_id == user.id,
        FamilyMembership.role == MembershipRole.ADMIN.value,
    )))
    if not is_admin:
        raise PermissionDeniedError(ADMIN_REQUIRED_MESSAGE)


@dataclass(frozen=True)
class FeedbackFilters:
    report_type: str | None = None
    status: str | None = None
    severity: str | None = None
    start_date: date | None = None
    end_date: date | None = None


def _filtered(query, filters: FeedbackFilters):
    if filters.report_type:
        query = query.where(FeedbackReport.report_type == filters.report_type)
    if filters.status:
        query = query.where(FeedbackReport.status == filters.status)
    if filters.severity:
        query = query.where(FeedbackReport.severity == filters.severity)
    if filters.start_date:
        start = datetime.combine(filters.start_date, time.min, tzinfo=timezone.utc)
        query = query.where(FeedbackReport.created_at >= start)
    if filters.end_date:
        end = datetime.combine(filters.end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        query = query.where(FeedbackReport.created_at < end)
    return query


async def list_reports(
    db: AsyncSession, filters: FeedbackFilters, page: int = 1, per_page: int = DEFAULT_PER_PAGE,
) -> tuple[list[FeedbackReport], dict]:
    per_page = min(max(per_page, 1), MAX_PER_PAGE)
    page = max(page, 1)
    total = await db.scalar(_filtered(select(func.count(FeedbackReport.id)), filters)) or 0
    result = await db.execute(
        _filtered(select(FeedbackReport), filters)
        .order_by(FeedbackReport.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page),
    )
    meta = {
        "current_page": page,
        "total_pages": math.ceil(total / per_page),
        "total_count": total,
        "per_page": per_page,
    }
    return list(result.scalars().all()), meta


async def get_report(db: AsyncSession, report_id: UUID) -> FeedbackReport:
    report = await db.get(FeedbackReport, report_id)
    if report is None:
        raise ResourceNotFoundError("FeedbackReport", str(report_id))
    return report


async def update_report(db: AsyncSession, report: FeedbackReport, changes: dict) -> FeedbackReport:
    if "assigned_to_id" in changes and changes["assigned_to_id"] is not None:
        if await db.get(User, changes["assigned_to_id"]) is None:
            raise ValidationError("Assignee not found", field="assigned_to_id")
    if "duplicate_of_id" in changes and changes["duplicate_of_id"] is not None:
        if changes["duplicate_of_id"] == report.id:
            raise ValidationError("A report cannot duplicate itself", field="duplicate_of_id")
        if await db.get(FeedbackReport, changes["duplicate_of_id"]) is None:
            raise ValidationError("Original report not found", field="duplicate_of_id")

    for field, value in changes.items():
        if field == "status" and value is None:
            continue
        setattr(report, field, value)
    if report.status == FeedbackStatus.RESOLVED.value and report.resolved_at is None:
        report.resolved_at = utcnow()
    await db.flush()
    logger.info(f"Feedback report {report.id} triaged", extra={"status": report.status})
    return report


# ─── Serialization ───────────────────────────────────────────────

def _iso(value) -> str | None:
    return value.isoformat() if value else None


def report_to_dict(report: FeedbackReport) -> dict:
    return {
        "id": str(report.id),
        "user_id": str(report.user_id) if report.user_id else None,
        "report_type": report.report_type,
        "title": report.title,
        "description": report.description,
        "severity": report.severity,
        "status": report.status,
        "context_data": report.context_data or {},
        "allow_contact": report.allow_contact,
        "contact_email": report.contact_email,
        "created_at": _iso(report.created_at),
    }


def _user_summary(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": str(user.id), "name": user.name, "email": user.email}


async def admin_report_to_dict(db: AsyncSession, report: FeedbackReport, detailed: bool = False) -> dict:
    author = await db.get(User, report.user_id) if report.user_id else None
    assignee = await db.get(User, report.assigned_to_id) if report.assigned_to_id else None
    data = {
        "id": str(report.id),
        "report_type": report.report_type,
        "title": report.title,
        "severity": report.severity,
        "status": report.status,
        "created_at": _iso(report.created_at),
        "user": _user_summary(author),
        "assigned_to": _user_summary(assignee),
        "duplicate_of_id": str(report.duplicate_of_id) if report.duplicate_of_id else None,
        "internal_notes": report.internal_notes,
    }
    if not detailed:
        return data

    original = await db.get(FeedbackReport, report.duplicate_of_id) if report.duplicate_of_id else None
    duplicates = await db.scalar(
        select(func.count(FeedbackReport.id)).where(FeedbackReport.duplicate_of_id == report.id),
    )
    data.update({
        "description": report.description,
        "context_data": report.context_data or {},
        "allow_contact": report.allow_contact,
        "contact_email": report.contact_email,
        "resolved_at": _iso(report.resolved_at),
        "duplicate_of": (
            {"id": str(original.id), "title": original.title, "status": original.status}
            if original else None
        ),
        "duplicates_count": duplicates or 0,
    })
    return data
