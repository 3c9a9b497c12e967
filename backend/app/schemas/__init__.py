"""Pydantic Schemas - request validation for API endpoints.

Invariants:
    - Schemas validate at the system boundary (user input only)
    - Domain enums from core/ back every enum field; use_enum_values dumps plain strings

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
    - Responses are plain dicts built by the services' *_to_dict helpers
"""
