"""Shared test fixtures for LeadCost-Engine."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient


NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock injected wherever the engine reads the time."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    from leadcost_engine.common.config import LeadCostSettings
    return LeadCostSettings(db_url="sqlite+aiosqlite://")


@pytest.fixture
async def engine(settings, clock):
    from leadcost_engine.engine import CostEngine
    eng = CostEngine(settings, clock=clock)
    await eng.start()
    yield eng
    await eng.close()


@pytest.fixture
def app(settings, engine):
    """Create a test app around the in-memory engine."""
    from leadcost_engine.app import create_app
    return create_app(settings, engine=engine)


@pytest.fixture
async def client(app):
    # ASGITransport doesn't run lifespan; the engine fixture already started the DB
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(autouse=True)
def leadcost_logger():
    """Restore the package logger after tests that call setup_logging()."""
    import logging
    logger = logging.getLogger("leadcost_engine")
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    saved_propagate = logger.propagate
    yield logger
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)
    logger.propagate = saved_propagate
