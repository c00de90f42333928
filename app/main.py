"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
No business logic here. See app.core.lifespan and app.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before importing or calling create_app().
"""

from collections.abc import Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.v1.router import api_router
from app.core.config import get_settings
from app.core.exception_handlers import register_exception_handlers
from app.core.flow_engine import FlowEngine
from app.core.lifespan import create_lifespan
from app.core.limiter import limiter
from app.shared.telemetry.logging import setup_logging
from app.shared.telemetry.telemetry import configure_telemetry


def create_app(
    flow_engine_factory: Callable[..., FlowEngine] | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        flow_engine_factory: Optional replacement for build_flow_engine
            (tests inject fake CRM/messaging gateways and a manual clock).
    """
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )
    app.state.flow_engine_factory = flow_engine_factory
    app.state.flow_engine = None

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    telemetry = configure_telemetry(settings)
    if telemetry is not None:
        telemetry.instrument_fastapi(app)

    app.include_router(api_router, prefix="/api/v1")
    return app
