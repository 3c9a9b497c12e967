"""Infrastructure Layer - database engine, external clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from core/ domain rules
    - Calls to Anthropic and Twilio are wrapped with error mapping

Design Decisions:
    - Resilient wrappers over raw clients so services see one error type
"""
