"""Goal Prompts - system prompts and user-prompt builders for AI goal tooling.

Invariants:
    - Every prompt asks for JSON only; parsing lives in core/ai_parsing.py
    - Builders take plain values so prompts are testable without ORM objects

Design Decisions:
    - One module for all goal prompts: refinement, sub-goal breakdown and CSV row parsing
      share the SMART vocabulary and response-format conventions
"""

from datetime import date

from app.core.ai_parsing import child_time_scales


# ─── Refinement ──────────────────────────────────────────────────

REFINEMENT_SYSTEM_PROMPT = """\
You are a goal-setting coach specializing in SMART goals (Specific, Measurable, Achievable, Relevant, Time-bound).
Your role is to help people refine their goals so they are more effective and achievable.

When analyzing a goal, provide:
1. Suggestions for each SMART criterion
2. Alternative title and description options
3. Potential obstacles and how to mitigate them
4. Milestones that break the goal down

Be constructive, encouraging and practical. Focus on actionable improvements.
Respond in valid JSON format only, with no additional text."""

REFINEMENT_RESPONSE_FORMAT = """\
Respond with a JSON object:
{"smart_suggestions": {"specific": "...", "measurable": "...", "achievable": "...", "relevant": "...", "time_bound": "..."},
 "alternative_titles": ["Title 1", "Title 2"], "alternative_descriptions": ["Description 1"],
 "potential_obstacles": [{"obstacle": "...", "mitigation": "..."}],
 "milestones": [{"title": "...", "description": "...", "suggested_progress": 25}],
 "overall_feedback": "..."}"""


def _or(value, fallback: str) -> str:
    return str(value) if value not in (None, "") else fallback


def build_refinement_prompt(goal) -> str:
    return f"""Please analyze and suggest improvements for this goal:

Title: {goal.title}
Description: {_or(goal.description, "Not provided")}
Time Scale: {goal.time_scale}
Due Date: {_or(goal.due_date, "Not set")}
Current Progress: {goal.progress}%

Current SMART Fields:
- Specific: {_or(goal.specific, "Not defined")}
- Measurable: {_or(goal.measurable, "Not defined")}
- Achievable: {_or(goal.achievable, "Not defined")}
- Relevant: {_or(goal.relevant, "Not defined")}
- Time-bound: {_or(goal.time_bound, "Not defined")}

{REFINEMENT_RESPONSE_FORMAT}"""


# ─── Sub-goals ───────────────────────────────────────────────────

SUB_GOAL_SYSTEM_PROMPT = """\
You are an expert goal coach with deep domain knowledge across many fields.
Given a high-level goal, research what it really takes and break it down into realistic sub-goals.

For any goal:
1. Identify the domain requirements and typical pathways to the goal
2. Break it into 4-8 logical sub-goals that form a complete path
3. Order them by dependency (what has to happen first)
4. Assign cumulative progress percentages (how much of the parent is done when each sub-goal is)
5. Pick an appropriate time scale for each sub-goal from the allowed list
6. Provide SMART field suggestions for each sub-goal

Respond in valid JSON format only, with no additional text."""

SUB_GOAL_RESPONSE_FORMAT = """\
Respond with a JSON object:
{
  "sub_goals": [
    {
      "title": "Sub-goal title",
      "description": "What this involves",
      "time_scale": "monthly",
      "suggested_progress": 15,
      "due_date_percent": 15,
      "order": 1,
      "smart_fields": {"specific": "...", "measurable": "...", "achievable": "...", "relevant": "...", "time_bound": "..."}
    }
  ],
  "domain_insights": "Insights about the domain and typical timeline",
  "total_duration_estimate": "Estimated total time to complete the parent goal"
}

Notes:
- suggested_progress is cumulative (0-100)
- due_date_percent (0-100) is when the sub-goal is due, as a share of the time until the parent's due date
- order is the sequence (1 = first)"""


def build_sub_goal_prompt(goal, today: date) -> str:
    days_until_due = (goal.due_date - today).days if goal.due_date else None
    allowed = ", ".join(child_time_scales(goal.time_scale))
    return f"""Please research and generate sub-goals for this goal:

Title: {goal.title}
Description: {_or(goal.description, "Not provided")}
Time Scale: {goal.time_scale}
Due Date: {_or(goal.due_date, "Not set")}
Days Until Due: {_or(days_until_due, "Unknown")}

Allowed sub-goal time scales: {allowed}
Generate 4-8 sub-goals that progressively work toward completing this goal.

{SUB_GOAL_RESPONSE_FORMAT}"""


# ─── CSV import ──────────────────────────────────────────────────

IMPORT_SYSTEM_PROMPT = """\
You are a goal import assistant for a family planning application.
Parse goal data and:
1. Determine time_scale (daily, weekly, monthly, quarterly, annual)
2. Extract and normalize SMART fields
3. Identify person names mentioned for assignment

Time scale inference rules:
- "Daily", "EOD", "every day" -> daily
- "Weekly", "each week", "per week" -> weekly
- "Monthly", month names, "EOM" -> monthly
- "Quarterly", "Q1-Q4", several quarters listed -> quarterly
- "Annual", "EOY", "December" as deadline, a year number -> annual

Respond with valid JSON only, no additional text."""

IMPORT_RESPONSE_FORMAT = """\
Respond with JSON:
{"title": "cleaned goal title", "description": "brief description or null",
 "time_scale": "daily|weekly|monthly|quarterly|annual",
 "specific": "...", "measurable": "...", "achievable": "...", "relevant": "...", "time_bound": "...",
 "assignee_names": ["Name1", "Name2"]}"""


def build_import_prompt(raw: dict, category: str | None, member_names: list[str]) -> str:
    return f"""Parse this goal from a CSV import:

Category: {category or "Uncategorized"}
Title: {raw.get("title") or ""}
Specific: {raw.get("specific") or ""}
Measurable: {raw.get("measurable") or ""}
Achievable: {raw.get("achievable") or ""}
Relevant: {raw.get("relevant") or ""}
Time-bound: {raw.get("time_bound") or ""}

Available family members for assignment: {", ".join(member_names)}

{IMPORT_RESPONSE_FORMAT}"""
