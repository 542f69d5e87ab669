"""
Shared fixtures: every test gets its own SQLite database file.

Environment is pinned before the application is imported so the global
settings, limiter and engine pick it up.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_JSON"] = "false"
os.environ["TIMEZONE"] = "UTC"
os.environ["SEED_SAMPLE_BUSES"] = "false"

import itertools
from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from bus_reservation.core.database import build_sessionmaker, get_db, init_db
from bus_reservation.core.timeutils import today_local
from bus_reservation.main import app
from bus_reservation.models import Bus, User, UserRole

_bus_numbers = itertools.count(1)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'bus_reservation.db'}",
        poolclass=NullPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def create_user(session_factory):
    """Factory: insert a user and return it (detached, attributes loaded)"""
    async def _create(email="rider@example.com", role=UserRole.USER, full_name="Test Rider"):
        async with session_factory() as session:
            user = User(
                email=email,
                full_name=full_name,
                phone="9000000000",
                password_hash="not-a-real-hash",
                role=role,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user
    return _create


@pytest.fixture
def create_bus(session_factory):
    """Factory: insert a bus departing tomorrow 08:00 unless told otherwise"""
    async def _create(**overrides):
        data = {
            "bus_number": f"TEST{next(_bus_numbers):04d}",
            "origin": "Mumbai",
            "destination": "Pune",
            "travel_date": today_local() + timedelta(days=1),
            "departure_time": "08:00",
            "total_seats": 40,
            "price": Decimal("500.00"),
        }
        data.update(overrides)
        data.setdefault("available_seats", data["total_seats"])

        async with session_factory() as session:
            bus = Bus(**data)
            session.add(bus)
            await session.commit()
            await session.refresh(bus)
            return bus
    return _create


@pytest_asyncio.fixture
async def user(create_user):
    return await create_user()


@pytest_asyncio.fixture
async def other_user(create_user):
    return await create_user(email="other@example.com", full_name="Other Rider")


@pytest_asyncio.fixture
async def admin(create_user):
    return await create_user(email="admin@example.com", role=UserRole.ADMIN, full_name="Fleet Admin")


@pytest_asyncio.fixture
async def bus(create_bus):
    return await create_bus()


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the test database"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
