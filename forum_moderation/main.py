"""Forum Moderation API: FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ForumError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and sweep task initialized on startup via lifespan context manager
    - The sweep task is always registered; its loop only runs when sweep_enabled

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Sweep stopped before the database pool is disposed
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from forum_moderation.api.error_handlers import register_error_handlers
from forum_moderation.api.routes import health, sanctions
from forum_moderation.config import get_settings
from forum_moderation.infrastructure.database import get_db_manager, init_db
from forum_moderation.infrastructure.observability import setup_logging
from forum_moderation.infrastructure.sweep_scheduler import init_sweep_task
from forum_moderation.services.factories import build_expiration_sweep

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    sweep = init_sweep_task(
        get_db_manager,
        build_expiration_sweep,
        interval_minutes=settings.sweep_interval_minutes,
        initial_delay_seconds=settings.sweep_initial_delay_seconds,
    )
    if settings.sweep_enabled:
        sweep.start()
    logger.info("Forum moderation API started")
    yield
    logger.info("Forum moderation API shutting down")
    await sweep.stop()
    await manager.dispose()


app = FastAPI(
    title="Forum Moderation API", version="1.0.0", lifespan=lifespan,
)

# CORS: configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(sanctions.router)

register_error_handlers(app)
