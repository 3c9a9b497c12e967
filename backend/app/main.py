"""Hearth API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map HearthError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized and the badge catalogue seeded on startup via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Three error handler layers: HearthError (domain), RequestValidationError
      (Pydantic), Exception (catch-all), registered from api/error_handlers.py
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import (
    account, auth, daily_plans, families, feedback, gamification, goal_imports, goals,
    habits, health, invitations, memberships, notifications, reflections, reviews, webhooks,
)
from app.config import get_settings
from app.infrastructure import database as db_module
from app.infrastructure.observability import setup_logging
from app.services.badge_service import seed_badges

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db_module.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    async with db_module.get_db_manager().session() as db:
        seeded = await seed_badges(db)
        await db.commit()
    logger.info(f"Hearth API started ({seeded} badge(s) seeded)")
    yield
    await db_module.get_db_manager().close()
    logger.info("Hearth API shutting down")


app = FastAPI(
    title="Hearth API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(families.router)
app.include_router(memberships.router)
app.include_router(invitations.router)
app.include_router(goals.router)
app.include_router(goal_imports.router)
app.include_router(daily_plans.router)
app.include_router(habits.router)
app.include_router(reflections.router)
app.include_router(reviews.weekly_router)
app.include_router(reviews.monthly_router)
app.include_router(reviews.quarterly_router)
app.include_router(reviews.annual_router)
app.include_router(notifications.router)
app.include_router(account.router)
app.include_router(gamification.router)
app.include_router(feedback.router)
app.include_router(feedback.admin_router)
app.include_router(webhooks.router)

register_error_handlers(app)
