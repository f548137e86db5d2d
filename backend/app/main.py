"""Nearby Reminders API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ReminderError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, schema and reminder runtime initialized by the lifespan;
      the tick driver is re-registered on every process start

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Runtime stored on app.state: routes reach it through get_runtime, tests
      replace it without patching module globals
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import device, events, health, reminders
from app.config import get_settings
from app.infrastructure.database import init_db
from app.infrastructure.kv_store import SqlKeyValueStore
from app.infrastructure.tick_lock import SqlTickLock
from app.infrastructure.observability import setup_logging
from app.services.reminder_runtime import build_runtime

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
    await manager.create_schema()
    runtime = build_runtime(
        settings, SqlKeyValueStore(manager), tick_lock=SqlTickLock(manager),
    )
    app.state.runtime = runtime
    if settings.tick_driver_autostart:
        runtime.driver.start()
    logger.info("Nearby Reminders API started")
    yield
    logger.info("Nearby Reminders API shutting down")
    await runtime.aclose()
    await manager.dispose()


app = FastAPI(
    title="Nearby Reminders API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(events.router)
app.include_router(device.router)
app.include_router(reminders.router)

register_error_handlers(app)
