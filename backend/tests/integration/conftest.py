"""
Integration fixtures: a seeded SQLite database and an HTTP client bound to
the application with its process-wide collaborators replaced.
"""

from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from marketplace.constants import (
    EVENT_COURSE_COMPLETED,
    EVENT_COURSE_ENROLLED,
    EVENT_LESSON_COMPLETED,
    EVENT_REVIEW_CREATED,
)
from marketplace.core.database import get_database_manager, get_database_session
from marketplace.main import app
from marketplace.models import Category, Course, User
from marketplace.seed import DEMO_PASSWORD, seed
from marketplace.services.cache.cache_manager import get_cache_manager
from marketplace.services.events.event_bus import get_event_bus


def pytest_collection_modifyitems(items):
    for item in items:
        if "integration" in item.path.parts:
            item.add_marker(pytest.mark.integration)


@pytest_asyncio.fixture
async def seeded(database):
    """Demo data keyed for lookups: courses by title, users by email."""
    await seed(database)

    async with database.get_session() as session:
        courses = (
            await session.execute(select(Course).options(selectinload(Course.lessons)))
        ).scalars().all()
        users = (await session.execute(select(User))).scalars().all()
        categories = (await session.execute(select(Category))).scalars().all()

    return SimpleNamespace(
        courses={course.title: course for course in courses},
        users={user.email: user for user in users},
        categories={category.slug: category for category in categories},
    )


@pytest_asyncio.fixture
async def client(database, cache, event_bus):
    async def session_override():
        async with database.get_session() as session:
            yield session

    app.dependency_overrides[get_database_session] = session_override
    app.dependency_overrides[get_database_manager] = lambda: database
    app.dependency_overrides[get_cache_manager] = lambda: cache
    app.dependency_overrides[get_event_bus] = lambda: event_bus

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as http_client:
        yield http_client

    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Log a seeded user in and return bearer headers."""

    async def _login(email: str, password: str = DEMO_PASSWORD) -> dict:
        response = await client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login


@pytest.fixture
def recorded_events(event_bus):
    """Names and payloads of every catalog event published during a test."""
    events = []
    for name in (
        EVENT_COURSE_ENROLLED,
        EVENT_COURSE_COMPLETED,
        EVENT_LESSON_COMPLETED,
        EVENT_REVIEW_CREATED,
    ):
        event_bus.subscribe(
            name, lambda payload, name=name: events.append((name, dict(payload)))
        )
    return events
