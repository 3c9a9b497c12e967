"""Database layer - declarative Base, shared column mixins and the standalone session factory.

Invariants:
    - Every model inherits Base and UUIDPrimaryKeyMixin
    - Timestamps are timezone-aware UTC

Design Decisions:
    - asyncpg driver for PostgreSQL (native async, no thread pool overhead)
"""
