"""Async Session Factory - sessions for code that runs outside the FastAPI app.

Invariants:
    - Same session settings as DatabaseSessionManager (AsyncSession, expire_on_commit=False)
    - Callers own the engine lifetime: dispose it when the script finishes

Design Decisions:
    - Separate from infrastructure/database.py: scheduled jobs run as one-shot processes
      (python -m app.jobs.reminders) without the app lifespan or its singleton
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker


def create_session_factory(
    database_url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an engine and a session factory bound to it."""
    engine = create_async_engine(database_url, echo=False, pool_pre_ping=True)
    return engine, async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
