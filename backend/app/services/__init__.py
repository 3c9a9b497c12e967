"""Services Layer - async use cases over the ORM and the AI client.

Invariants:
    - Services flush, never commit; the request session owns the transaction
    - Access checks go through family_access before any read or write

Design Decisions:
    - One service module per aggregate, plus goal_prompts/goal_refinement/
      sub_goal_generation/goal_import for the AI-assisted flows
"""
