"""
Pytest fixtures for test database, client, and authentication.

Every test gets its own SQLite file database, so concurrent sessions see
real locking and the partial unique indexes behave as they do in
PostgreSQL. The `get_db` override opens a new session per request, like
separate request handlers in production.
"""

import os

# Must be set before booking_engine reads its settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./.pytest-booking-engine.db"
os.environ["REDIS_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from booking_engine.core.security import create_access_token
from booking_engine.db.base import Base
from booking_engine.db.session import get_db
from booking_engine.main import app
from booking_engine.models import Schedule  # noqa: F401 - registers all tables

CUSTOMER_ID = 1
OTHER_CUSTOMER_ID = 2

DEPARTURE = datetime(2026, 12, 1, 8, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Fresh database file with all tables created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def make_headers(customer_id: int) -> dict:
    token = create_access_token(data={"sub": str(customer_id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Build Authorization headers for any customer id."""
    return make_headers


@pytest.fixture
def auth_headers() -> dict:
    """Authorization headers for CUSTOMER_ID."""
    return make_headers(CUSTOMER_ID)


@pytest.fixture
def other_auth_headers() -> dict:
    return make_headers(OTHER_CUSTOMER_ID)


@pytest.fixture
def make_schedule(session_factory):
    """Factory for schedules. Returned objects are detached and safe to read."""

    async def _make(price: str = "1000.00", capacity: int = 40, departure: datetime = DEPARTURE) -> Schedule:
        schedule = Schedule(
            route_id=1,
            bus_id=1,
            departure_time=departure,
            arrival_time=departure + timedelta(hours=6),
            price=Decimal(price),
            capacity=capacity,
        )
        async with session_factory() as session:
            session.add(schedule)
            await session.commit()
        return schedule

    return _make


@pytest_asyncio.fixture
async def schedule(make_schedule) -> Schedule:
    """A 40-seat schedule priced at 1000.00 per seat."""
    return await make_schedule()


@pytest.fixture
def book(client: AsyncClient):
    """POST a booking and return the JSON body, asserting it was created."""

    async def _book(headers: dict, schedule_id: int, seats) -> dict:
        response = await client.post(
            "/api/v1/bookings/",
            json={"schedule_id": schedule_id, "seat_numbers": seats},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _book
