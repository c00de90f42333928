"""Pytest configuration and fixtures for leadflow.

Every test gets its own SQLite file (DATABASE_URL points into tmp_path) and
a fresh Settings instance. Engine tests drive time with ManualClock and talk
to AsyncMock CRM / messaging gateways instead of HTTP.
"""

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import get_settings
from app.core.flow_engine import FlowEngine, build_flow_engine
from app.core.limiter import limiter
from app.infrastructure.persistence import database
from app.main import create_app
from app.shared.utils.clock import ManualClock
from tests.helpers import START


@pytest.fixture(autouse=True)
def test_settings(tmp_path, monkeypatch):
    """Point settings at a per-test SQLite file with background loops off."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'leadflow.db'}")
    monkeypatch.setenv("SCHEDULER_ENABLED", "false")
    monkeypatch.setenv("SCHEDULER_CONCURRENCY", "1")
    monkeypatch.setenv("TELEMETRY_ENABLED", "false")
    monkeypatch.setenv("EVENT_BUS_BACKEND", "memory")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def crm() -> AsyncMock:
    """CRM gateway double: lead exists with a phone, tag lookups say no."""
    gateway = AsyncMock()
    gateway.get_lead.return_value = {
        "id": "lead-1",
        "name": "Ana",
        "phone": "+5511999990000",
        "stage_id": "new",
    }
    gateway.lead_has_tag.return_value = False
    gateway.find_pending_call.return_value = None
    gateway.create_activity.return_value = "act-1"
    gateway.enqueue_call.return_value = "call-1"
    gateway.get_message_template.return_value = {"id": "tpl-1", "content": "Hello {{ name }}"}
    return gateway


@pytest.fixture
def messaging() -> AsyncMock:
    gateway = AsyncMock()
    gateway.send_whatsapp_message.return_value = "msg-1"
    return gateway


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Session factory over a freshly created schema."""
    await database.dispose_engine()
    await database.create_schema()
    yield database.get_session_factory()
    await database.dispose_engine()


@pytest.fixture
def flow_engine(test_settings, session_factory, clock, crm, messaging) -> FlowEngine:
    """Engine wired to the test database, manual clock and gateway doubles (not started)."""
    return build_flow_engine(
        test_settings, session_factory, clock=clock, crm=crm, messaging=messaging
    )


@pytest.fixture
async def app(clock, crm, messaging) -> AsyncIterator[FastAPI]:
    """Application with its lifespan running and the engine built on test doubles."""

    def engine_factory(settings, session_factory) -> FlowEngine:
        return build_flow_engine(
            settings, session_factory, clock=clock, crm=crm, messaging=messaging
        )

    await database.dispose_engine()
    limiter.reset()
    application = create_app(flow_engine_factory=engine_factory)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
