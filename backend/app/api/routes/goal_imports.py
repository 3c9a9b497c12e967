"""Goal Import Routes - accept a goals CSV and import it in the background.

Invariants:
    - adults and admins only; the upload must be non-empty UTF-8 text
    - 202 Accepted: the importer is notified with a summary when the job finishes
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile, status

from app.api.dependencies import get_family_context, require_goal_manager
from app.core.errors import ValidationError
from app.infrastructure.anthropic_client import ResilientAnthropicClient, get_ai_client
from app.services.family_access import FamilyContext
from app.services.goal_import import parse_csv, run_goal_import

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/families/{family_id}/goal_imports", tags=["goal_imports"])


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def create_goal_import(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    ctx: FamilyContext = Depends(get_family_context),
    client: ResilientAnthropicClient = Depends(get_ai_client),
):
    require_goal_manager(ctx)
    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError("File must be UTF-8 encoded CSV", field="file") from exc
    if not content.strip():
        raise ValidationError("File is empty", field="file")
    row_count = len(parse_csv(content))

    background_tasks.add_task(run_goal_import, ctx.family.id, ctx.user.id, content, client)
    logger.info(
        f"Goal import queued ({row_count} rows, {file.filename})",
        extra={"user_id": ctx.user.id, "family_id": ctx.family.id},
    )
    return {
        "message": "Goal import started. You'll be notified when complete.",
        "row_count": row_count,
    }
