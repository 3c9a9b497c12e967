"""Goal Import - turns a goals spreadsheet (CSV) into family goals with AI-parsed fields.

Invariants:
    - Rows are classified by core.goal_import_rows; only goal rows create goals
    - A category row applies to every goal row below it until the next category
    - One bad row never aborts the import: it becomes a failures entry
      {row (1-based), error, raw}
    - Imported goals are family-visible, not_started, progress 0, created by the importer
    - Result shape: {created_count, failed_count, categories, goals, failures}

Design Decisions:
    - Each row is one model call; the row-level failure path covers both API and JSON errors
    - Assignee names are matched against member names: first name, then full name,
      then substring, mirroring how people write names in spreadsheets
"""

import csv
import io
import json
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.ai_parsing import normalize_imported_goal, parse_json_object
from app.core.domain_types import GoalStatus, GoalVisibility, NotificationType, SMART_FIELDS
from app.core.errors import AnthropicAPIError, ValidationError
from app.core.goal_import_rows import RowType, detect_row_type, extract_raw_goal
from app.infrastructure import database as db_module
from app.infrastructure.anthropic_client import ResilientAnthropicClient
from app.models.goal import Goal, GoalAssignment
from app.models.user import User
from app.services import family_service, notification_service
from app.services.goal_prompts import IMPORT_SYSTEM_PROMPT, build_import_prompt

logger = logging.getLogger(__name__)


class RowParseError(Exception):
    pass


def parse_csv(content: str) -> list[list[str]]:
    try:
        return list(csv.reader(io.StringIO(content)))
    except csv.Error as e:
        raise ValidationError(f"Invalid CSV format: {e}", field="file") from e


def match_assignee(name: str, members: list[User]) -> UUID | None:
    wanted = (name or "").strip().lower()
    if not wanted:
        return None
    for member in members:
        first = (member.name or "").split()
        if first and first[0].lower() == wanted:
            return member.id
    for member in members:
        if (member.name or "").strip().lower() == wanted:
            return member.id
    for member in members:
        full = (member.name or "").strip().lower()
        first = full.split()[0] if full else ""
        if full and (wanted in full or (first and first in wanted)):
            return member.id
    return None


async def _parse_row(
    client: ResilientAnthropicClient, raw: dict, category: str | None, member_names: list[str],
) -> dict:
    if not raw.get("title"):
        raise RowParseError("No title provided")
    try:
        text = await client.complete_text(
            system=IMPORT_SYSTEM_PROMPT,
            prompt=build_import_prompt(raw, category, member_names),
        )
        data = parse_json_object(text)
    except AnthropicAPIError as e:
        raise RowParseError(f"AI parsing failed: {e.message}") from e
    except (json.JSONDecodeError, ValueError) as e:
        raise RowParseError(f"Failed to parse AI response: {e}") from e
    return normalize_imported_goal(data, raw)


def _build_goal(family_id: UUID, user: User, parsed: dict, category: str | None,
                members: list[User]) -> Goal:
    description = " - ".join(p for p in (category, parsed.get("description")) if p) or None
    assignee_ids = []
    for name in parsed.get("assignee_names") or []:
        uid = match_assignee(name, members)
        if uid and uid not in assignee_ids:
            assignee_ids.append(uid)
    return Goal(
        family_id=family_id,
        creator_id=user.id,
        title=parsed["title"],
        description=description,
        time_scale=parsed["time_scale"],
        status=GoalStatus.NOT_STARTED.value,
        visibility=GoalVisibility.FAMILY.value,
        progress=0,
        assignments=[GoalAssignment(user_id=uid) for uid in assignee_ids],
        **{f: parsed.get(f) for f in SMART_FIELDS},
    )


async def import_goals(
    db: AsyncSession,
    client: ResilientAnthropicClient,
    family_id: UUID,
    user: User,
    content: str,
) -> dict:
    rows = parse_csv(content)
    members = [u for _, u in await family_service.list_members(db, family_id)]
    member_names = [m.name for m in members if m.name]
    results = {
        "created_count": 0, "failed_count": 0, "categories": [], "goals": [], "failures": [],
    }
    category = None

    for index, row in enumerate(rows):
        row_type = detect_row_type(row)
        if row_type == RowType.CATEGORY:
            category = row[0].strip()
            results["categories"].append(category)
            continue
        if row_type != RowType.GOAL:
            continue

        raw = extract_raw_goal(row)
        try:
            parsed = await _parse_row(client, raw, category, member_names)
        except RowParseError as e:
            results["failures"].append({"row": index + 1, "error": str(e), "raw": raw["title"]})
            results["failed_count"] += 1
            continue

        goal = _build_goal(family_id, user, parsed, category, members)
        db.add(goal)
        await db.flush()
        results["goals"].append({
            "id": str(goal.id),
            "title": goal.title,
            "time_scale": goal.time_scale,
            "category": category,
            "assignee_ids": [str(uid) for uid in goal.assignee_ids],
        })
        results["created_count"] += 1

    logger.info(
        f"Goal import: {results['created_count']} created, {results['failed_count']} failed",
        extra={"user_id": user.id, "family_id": family_id},
    )
    return results


async def run_goal_import(
    family_id: UUID, user_id: UUID, content: str, client: ResilientAnthropicClient,
) -> dict | None:
    """Background job: import, commit and notify the importer with a summary."""
    async with db_module.get_db_manager().session() as db:
        user = await db.get(User, user_id)
        if user is None:
            return None
        link = f"/families/{family_id}/goals"
        try:
            results = await import_goals(db, client, family_id, user, content)
        except ValidationError as e:
            await notification_service.notify(
                db, user_id, "Goal import failed", e.message, link, NotificationType.GOAL_UPDATE,
            )
            await db.commit()
            logger.error(f"Goal import failed: {e.message}", extra={"job": "goal_import"})
            return None

        body = f"{results['created_count']} goals imported"
        if results["failed_count"]:
            body += f", {results['failed_count']} rows failed"
        await notification_service.notify(
            db, user_id, "Goal import complete", body + ".", link, NotificationType.GOAL_UPDATE,
        )
        await db.commit()
        return results
