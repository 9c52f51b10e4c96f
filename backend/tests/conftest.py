"""
Main pytest configuration for all backend tests.

Environment variables are set before any application module is imported so
that the cached settings pick them up.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-0123456789"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CACHE_ENABLED"] = "true"

import pytest
import pytest_asyncio

from marketplace.core.config import get_settings
from marketplace.core.database import DatabaseManager
from marketplace.services.cache.cache_manager import CacheManager
from marketplace.services.events.event_bus import EventBus


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O")


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheManager(enabled=True, default_ttl_seconds=3600, clock=clock)


@pytest.fixture
def event_bus():
    bus = EventBus()
    yield bus
    bus.clear()


@pytest_asyncio.fixture
async def database(settings):
    """Fresh in-memory SQLite database with all tables created."""
    manager = DatabaseManager(settings)
    await manager.initialize(create_schema=True)
    try:
        yield manager
    finally:
        await manager.drop_all()
        await manager.close()


@pytest_asyncio.fixture
async def session(database):
    async with database.get_session() as session:
        yield session
