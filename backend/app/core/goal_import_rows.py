"""Goal Import Rows - classify spreadsheet rows and extract raw goal columns.

Invariants:
    - Column layout: [category, title, specific, measurable, achievable, relevant, time_bound]
    - A header row has >= 3 of its first six cells matching HEADER_KEYWORDS
    - A category row has only column 0 filled, shorter than 50 chars, non-numeric
    - A goal row has a non-blank column 1
    - Everything else is skipped
"""

from enum import Enum

HEADER_KEYWORDS = frozenset({
    "title", "specific", "measurable", "achievable", "relevant", "time-bound",
})


class RowType(str, Enum):
    EMPTY = "empty"
    HEADER = "header"
    CATEGORY = "category"
    GOAL = "goal"


def _cell(row: list, index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def is_header_row(row: list) -> bool:
    first_few = {str(c).strip().lower() for c in row[:6] if c is not None}
    return len(first_few & HEADER_KEYWORDS) >= 3


def detect_row_type(row: list | None) -> RowType:
    if not row or all(not _cell(row, i) for i in range(len(row))):
        return RowType.EMPTY
    if is_header_row(row):
        return RowType.HEADER

    first, second = _cell(row, 0), _cell(row, 1)
    rest_blank = all(not _cell(row, i) for i in range(2, len(row)))
    if first and not second and rest_blank and len(first) < 50 and not first.isdigit():
        return RowType.CATEGORY
    if second:
        return RowType.GOAL
    return RowType.EMPTY


def extract_raw_goal(row: list) -> dict:
    return {
        "title": _cell(row, 1),
        "specific": _cell(row, 2) or None,
        "measurable": _cell(row, 3) or None,
        "achievable": _cell(row, 4) or None,
        "relevant": _cell(row, 5) or None,
        "time_bound": _cell(row, 6) or None,
    }
