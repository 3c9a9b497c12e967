"""Goal Import Rows - spreadsheet row classification."""

from app.core.goal_import_rows import RowType, detect_row_type, extract_raw_goal


def test_blank_rows_are_empty():
    assert detect_row_type(None) == RowType.EMPTY
    assert detect_row_type([]) == RowType.EMPTY
    assert detect_row_type(["", "  ", None]) == RowType.EMPTY


def test_header_row_needs_three_keywords():
    assert detect_row_type(["Category", "Title", "Specific", "Measurable"]) == RowType.HEADER
    assert detect_row_type(["", "Title", "Notes"]) == RowType.GOAL


def test_category_row_is_short_lone_first_cell():
    assert detect_row_type(["Health", "", ""]) == RowType.CATEGORY
    assert detect_row_type(["2026", "", ""]) == RowType.EMPTY
    assert detect_row_type(["x" * 60]) == RowType.EMPTY


def test_goal_row_has_title_in_second_column():
    row = ["Health", "Run a marathon", "Finish under 4h", "", "", "", "By October"]
    assert detect_row_type(row) == RowType.GOAL
    assert extract_raw_goal(row) == {
        "title": "Run a marathon",
        "specific": "Finish under 4h",
        "measurable": None,
        "achievable": None,
        "relevant": None,
        "time_bound": "By October",
    }


def test_short_goal_row_pads_missing_columns():
    assert extract_raw_goal(["", "Read more"])["time_bound"] is None
