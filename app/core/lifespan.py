"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (flow engine, event bus,
scheduler, telemetry, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.config import get_settings
from app.core.flow_engine import build_flow_engine
from app.infrastructure.persistence import database
from app.shared.telemetry.telemetry import get_telemetry, set_telemetry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: session factory (schema creation on SQLite), flow engine
    (event bus, then scheduler). Shutdown runs in reverse, then telemetry
    shutdown and SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    session_factory = database.get_session_factory()
    if settings.is_sqlite:
        await database.create_schema()
        logger.info("SQLite schema ensured")

    telemetry = get_telemetry()
    if telemetry is not None:
        telemetry.instrument_sqlalchemy(database.engine)

    factory = getattr(app.state, "flow_engine_factory", None) or build_flow_engine
    flow_engine = factory(settings, session_factory)
    await flow_engine.start()
    app.state.flow_engine = flow_engine

    yield

    # ---- Shutdown ----
    await flow_engine.stop()
    app.state.flow_engine = None

    if telemetry is not None:
        telemetry.shutdown()
        set_telemetry(None)

    await database.dispose_engine()
    logger.info("Database engine disposed")
