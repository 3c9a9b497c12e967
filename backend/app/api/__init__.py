"""API Layer - FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All errors leave as {"error": {...}} JSON

Design Decisions:
    - Thin routes delegate to services
"""
