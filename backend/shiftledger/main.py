"""Shift Ledger API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ShiftLedgerError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, publisher, accumulator and poller built in the lifespan; the
      poller is the external on/off switch (started on startup when enabled,
      stopped on shutdown after its in-flight tick finishes)

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Components hung on app.state instead of module globals so tests can swap them
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shiftledger.api.error_handlers import register_error_handlers
from shiftledger.api.routes import health, production
from shiftledger.config import get_settings
from shiftledger.infrastructure.clock import SystemClock
from shiftledger.infrastructure.database import init_db
from shiftledger.infrastructure.observability import setup_logging
from shiftledger.services.alert_hook import LoggingAlertHook
from shiftledger.services.event_publisher import BroadcastEventPublisher
from shiftledger.services.production_accumulator import ProductionAccumulator
from shiftledger.services.production_poller import ProductionPoller

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
    publisher = BroadcastEventPublisher(settings.event_queue_size)
    accumulator = ProductionAccumulator(
        session_scope=manager.session,
        publisher=publisher,
        alert_hook=LoggingAlertHook(),
        clock=SystemClock(),
        facility_tz=settings.facility_tz,
        fallback_operator_id=settings.fallback_operator_id,
        max_concurrency=settings.tick_concurrency,
    )
    poller = ProductionPoller(accumulator, settings.poll_interval_seconds)
    app.state.publisher = publisher
    app.state.poller = poller

    if settings.poller_enabled:
        poller.start()
    logger.info("Shift Ledger API started")
    yield
    logger.info("Shift Ledger API shutting down")
    await poller.stop()
    await manager.dispose()


app = FastAPI(
    title="Shift Ledger API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(production.router)

register_error_handlers(app)
