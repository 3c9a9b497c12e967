"""Core Layer - pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic; "now" is always passed in

Design Decisions:
    - Rules (points, streaks, badges, review periods, role policies) live here so
      services stay a thin shell around them
"""
