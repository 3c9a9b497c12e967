"""AI Response Parsing - JSON extraction and normalization of model output for goal tooling.

Invariants:
    - extract_json() prefers a ```json fence, then any ``` fence, then the raw text
    - parse_json_object() raises ValueError unless the payload is a JSON object
    - Normalizers never raise on odd shapes: wrong types collapse to empty values
    - List caps: titles 5, descriptions 3, obstacles 5, milestones 10, sub-goals 8
    - Percentages are clamped to 0..100

Design Decisions:
    - Model output is untrusted input: everything is coerced and bounded here,
      before it reaches the database or the API response
    - Pure module: services own the Anthropic call and error mapping
"""

import json
import math
import re
from datetime import date, timedelta

from app.core.domain_types import SMART_FIELDS, TimeScale

_JSON_FENCE = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL)
_ANY_FENCE = re.compile(r"```\s*(.*?)\s*```", re.DOTALL)

DEFAULT_FEEDBACK = "Goal analysis complete."

TIME_SCALE_CHILDREN: dict[str, tuple[str, ...]] = {
    TimeScale.ANNUAL.value: (TimeScale.QUARTERLY.value, TimeScale.MONTHLY.value),
    TimeScale.QUARTERLY.value: (TimeScale.MONTHLY.value, TimeScale.WEEKLY.value),
}
DEFAULT_CHILD_SCALES = (TimeScale.MONTHLY.value, TimeScale.WEEKLY.value)

MAX_SUB_GOALS = 8


def extract_json(text: str) -> str:
    if "```json" in text:
        match = _JSON_FENCE.search(text)
        if match:
            return match.group(1)
    if "```" in text:
        match = _ANY_FENCE.search(text)
        if match:
            return match.group(1)
    return text


def parse_json_object(text: str) -> dict:
    data = json.loads(extract_json(text))
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data


def _presence(value) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _clamp_int(value, low: int = 0, high: int = 100) -> int:
    try:
        n = int(float(value))
    except (TypeError, ValueError):
        n = 0
    return max(low, min(high, n))


def _string_list(values, limit: int) -> list[str]:
    if not isinstance(values, list):
        return []
    return [s for s in (_presence(v) for v in values[:limit]) if s]


# ─── Refinement ──────────────────────────────────────────────────

def normalize_smart_fields(fields, keep_empty: bool = True) -> dict:
    if not isinstance(fields, dict):
        return {f: None for f in SMART_FIELDS} if keep_empty else {}
    normalized = {f: _presence(fields.get(f)) for f in SMART_FIELDS}
    if keep_empty:
        return normalized
    return {k: v for k, v in normalized.items() if v is not None}


def _normalize_obstacles(obstacles) -> list[dict]:
    if not isinstance(obstacles, list):
        return []
    result = []
    for item in obstacles[:5]:
        if not isinstance(item, dict):
            continue
        entry = {
            k: v for k, v in (
                ("obstacle", _presence(item.get("obstacle"))),
                ("mitigation", _presence(item.get("mitigation"))),
            ) if v is not None
        }
        if entry:
            result.append(entry)
    return result


def _normalize_milestones(milestones) -> list[dict]:
    if not isinstance(milestones, list):
        return []
    result = []
    for item in milestones[:10]:
        if not isinstance(item, dict) or not _presence(item.get("title")):
            continue
        result.append({
            "title": str(item["title"]),
            "description": _presence(item.get("description")),
            "suggested_progress": _clamp_int(item.get("suggested_progress")),
        })
    return result


def normalize_refinement(data: dict) -> dict:
    return {
        "smart_suggestions": normalize_smart_fields(data.get("smart_suggestions")),
        "alternative_titles": _string_list(data.get("alternative_titles"), 5),
        "alternative_descriptions": _string_list(data.get("alternative_descriptions"), 3),
        "potential_obstacles": _normalize_obstacles(data.get("potential_obstacles")),
        "milestones": _normalize_milestones(data.get("milestones")),
        "overall_feedback": _presence(data.get("overall_feedback")) or DEFAULT_FEEDBACK,
    }


# ─── Sub-goals ───────────────────────────────────────────────────

def child_time_scales(parent_scale: str) -> tuple[str, ...]:
    return TIME_SCALE_CHILDREN.get(parent_scale, DEFAULT_CHILD_SCALES)


def sub_goal_due_date(parent_due: date | None, percent, today: date) -> date | None:
    if parent_due is None or percent is None or percent == "":
        return None
    try:
        pct = max(0.0, min(100.0, float(percent))) / 100.0
    except (TypeError, ValueError):
        return None
    days_until_parent_due = (parent_due - today).days
    offset = days_until_parent_due * pct
    # half away from zero
    days = int(math.floor(abs(offset) + 0.5)) * (1 if offset >= 0 else -1)
    return today + timedelta(days=days)


def normalize_sub_goals(
    data: dict, parent_scale: str, parent_due: date | None, today: date,
) -> dict:
    allowed = child_time_scales(parent_scale)
    raw = data.get("sub_goals")
    sub_goals = []
    if isinstance(raw, list):
        for index, item in enumerate(raw[:MAX_SUB_GOALS]):
            if not isinstance(item, dict) or not _presence(item.get("title")):
                continue
            scale = str(item.get("time_scale") or "").lower()
            try:
                order = int(item.get("order") or 0)
            except (TypeError, ValueError):
                order = 0
            sub_goals.append({
                "title": str(item["title"]).strip(),
                "description": _presence(item.get("description")),
                "time_scale": scale if scale in allowed else allowed[0],
                "suggested_progress": _clamp_int(item.get("suggested_progress")),
                "due_date": sub_goal_due_date(parent_due, item.get("due_date_percent"), today),
                "order": order if order > 0 else index + 1,
                "smart_fields": normalize_smart_fields(item.get("smart_fields"), keep_empty=False),
            })
    sub_goals.sort(key=lambda sg: sg["order"])
    return {
        "sub_goals": sub_goals,
        "domain_insights": _presence(data.get("domain_insights")) or DEFAULT_FEEDBACK,
        "total_duration_estimate": _presence(data.get("total_duration_estimate")),
    }


# ─── CSV import ──────────────────────────────────────────────────

def normalize_imported_goal(data: dict, raw: dict) -> dict:
    """Merge the model's reading of a CSV row with the raw columns it came from."""
    scale = str(data.get("time_scale") or "").lower().strip()
    names = data.get("assignee_names")
    if isinstance(names, str):
        names = [names]
    parsed = {
        "title": (_presence(data.get("title")) or raw.get("title") or "")[:255],
        "description": _presence(data.get("description")),
        "time_scale": scale if scale in {t.value for t in TimeScale} else TimeScale.ANNUAL.value,
        "assignee_names": [n for n in (_presence(x) for x in (names or [])) if n],
    }
    for smart_field in SMART_FIELDS:
        parsed[smart_field] = _presence(data.get(smart_field)) or raw.get(smart_field)
    return parsed
