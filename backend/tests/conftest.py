"""
Pytest fixtures for test database, client, and seeded rides.

Each test gets a fresh schema. By default that is a throwaway SQLite file;
set TEST_DATABASE_URL to run the same suite against PostgreSQL.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import date, time
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app.main import app
from app.db.base import Base
from app.db.session import Database, get_db
from app.models.booking import Booking
from app.models.ride import Ride
from app.schemas.booking import BookingCreate
from app.schemas.ride import RideCreate
from app.schemas.user import UserCreate
from app.services.auth_service import register_user
from app.services.booking_service import request_booking
from app.services.ride_service import post_ride

RIDE_DATE = date(2030, 1, 15)


@pytest_asyncio.fixture(scope="function")
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Create tables, yield the database handle, then drop tables for isolation."""
    url = os.getenv("TEST_DATABASE_URL")
    if url:
        test_db = Database(url)
    else:
        # Concurrent writers wait on the SQLite file lock instead of failing fast
        test_db = Database(
            f"sqlite+aiosqlite:///{tmp_path / 'rideshare_test.db'}",
            connect_args={"timeout": 30},
        )

    async with test_db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_db

    async with test_db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_db.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session on the test database."""

    async def override_get_db():
        async with database.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession):
    """A registered student: S1 / a@x.com / correct-horse."""
    return await register_user(db_session, UserCreate(
        student_id="S1",
        full_name="Asha Rao",
        phone_number="555-0101",
        email="a@x.com",
        password="correct-horse",
    ))


@pytest.fixture
def ride_payload():
    """Factory for a valid /post-ride body."""

    def _payload(**overrides) -> dict:
        payload = {
            "studentId": "R1",
            "riderName": "Ravi Kumar",
            "phoneNo": "555-0199",
            "source": "North Campus Gate",
            "destination": "Central Station",
            "leaveDate": RIDE_DATE.isoformat(),
            "leaveTime": "09:30:00",
            "seatsAvailable": 2,
            "note": "One bag each",
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def make_ride(database: Database):
    """Factory that posts a ride through the ride service."""

    async def _make(seats: int = 2, **overrides) -> Ride:
        fields = dict(
            student_id="R1",
            rider_name="Ravi Kumar",
            phone_no="555-0199",
            source="North Campus Gate",
            destination="Central Station",
            leave_date=RIDE_DATE,
            leave_time=time(9, 30),
            seats_available=seats,
            note=None,
        )
        fields.update(overrides)
        async with database.session() as session:
            return await post_ride(session, RideCreate(**fields))

    return _make


@pytest.fixture
def seats_left(database: Database):
    """Reads a ride's current seats_available with a fresh session."""

    async def _seats_left(ride_id: int) -> int:
        async with database.session() as session:
            ride = await session.get(Ride, ride_id)
            return ride.seats_available

    return _seats_left


@pytest.fixture
def make_booking(database: Database):
    """Factory that creates a pending booking through the booking service."""

    async def _make(ride_id: int, seater_id: str = "S2", **overrides) -> Booking:
        fields = dict(
            ride_id=ride_id,
            seater_name=f"Seater {seater_id}",
            seater_phone="555-0202",
            seater_student_id=seater_id,
        )
        fields.update(overrides)
        async with database.session() as session:
            return await request_booking(session, BookingCreate(**fields))

    return _make


@pytest_asyncio.fixture
async def test_ride(make_ride) -> Ride:
    """A ride to Central Station with 2 seats, owned by R1."""
    return await make_ride(seats=2)


@pytest_asyncio.fixture
async def last_seat_ride(make_ride) -> Ride:
    """A ride with exactly one seat left."""
    return await make_ride(seats=1, destination="Airport Terminal 2")
