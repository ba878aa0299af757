"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models are SQLite-compatible
(JSON columns, no dialect-specific types), so tables are created straight
from ``Base.metadata``.  Redis is an ``AsyncMock`` whose ``SET NX`` always
succeeds, and the clock is pinned.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from return_vehicle.domain.clock import FixedClock
from return_vehicle.domain.enums import (
    BookingStatus,
    UserRole,
    VehicleFeature,
    VehicleStatus,
    VehicleType,
)
from return_vehicle.domain.pricing import calculate_price
from return_vehicle.infrastructure.database import Base
from return_vehicle.infrastructure.models import BookingModel, UserModel, VehicleModel


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# Monday 2026-10-19 06:00 UTC (12:00 in Dhaka)
NOW = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh in-memory database per test; one shared connection."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def redis_mock() -> AsyncMock:
    """Redis stand-in: every lock acquire and release succeeds."""
    redis = AsyncMock()
    redis.set.return_value = True
    redis.eval.return_value = 1
    return redis


# ── Builders ──────────────────────────────────────────────────────────


async def add_user(
    session: AsyncSession,
    *,
    name: str = "Nusrat Jahan",
    email: Optional[str] = None,
    role: UserRole = UserRole.PASSENGER,
    phone: str = "+8801711000001",
) -> UserModel:
    uid = f"uid-{name.lower().replace(' ', '-')}"
    user = UserModel(
        external_uid=uid,
        email=email or f"{uid}@example.com",
        name=name,
        phone=phone,
        role=role,
    )
    session.add(user)
    await session.flush()
    return user


async def add_vehicle(
    session: AsyncSession,
    driver: UserModel,
    *,
    plate_number: str = "DHAKA-GA-11-2345",
    type: VehicleType = VehicleType.CAR,
    status: VehicleStatus = VehicleStatus.APPROVED,
    is_active: bool = True,
    is_available: bool = True,
    base_price: float = 100,
    price_per_km: float = 15,
    price_per_hour: float = 60,
    minimum_fare: float = 150,
    passenger_capacity: int = 4,
    city: str = "Dhaka",
    area: str = "Gulshan",
    features: tuple[VehicleFeature, ...] = (VehicleFeature.AC,),
    rating_average: float = 4.5,
) -> VehicleModel:
    vehicle = VehicleModel(
        driver=driver,
        type=type,
        brand="Toyota",
        model="Axio",
        year=2019,
        plate_number=plate_number,
        color="White",
        passenger_capacity=passenger_capacity,
        base_price=base_price,
        price_per_km=price_per_km,
        price_per_hour=price_per_hour,
        minimum_fare=minimum_fare,
        city=city,
        area=area,
        latitude=23.7925,
        longitude=90.4078,
        is_active=is_active,
        is_available=is_available,
        status=status,
        rating_average=rating_average,
    )
    vehicle.set_features([f.value for f in features])
    session.add(vehicle)
    await session.flush()
    return vehicle


async def add_booking(
    session: AsyncSession,
    user: UserModel,
    vehicle: VehicleModel,
    *,
    scheduled_at: datetime,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> BookingModel:
    pricing = calculate_price(vehicle.rate_card, 10, 30)
    booking = BookingModel(
        user=user,
        driver=vehicle.driver,
        vehicle=vehicle,
        pickup_address="Gulshan 2 Circle",
        pickup_lat=23.7925,
        pickup_lng=90.4078,
        dropoff_address="Hazrat Shahjalal Airport",
        dropoff_lat=23.8433,
        dropoff_lng=90.3978,
        distance_km=10,
        estimated_duration_min=30,
        scheduled_at=scheduled_at,
        status=status,
        **pricing.as_dict(),
    )
    session.add(booking)
    await session.flush()
    return booking


def booking_payload(vehicle_id: int, user_id: int, **overrides) -> dict:
    """A valid camelCase booking request one day after ``NOW``."""
    payload = {
        "vehicleId": vehicle_id,
        "userId": user_id,
        "pickupLocation": {
            "address": "Gulshan 2 Circle",
            "coordinates": {"latitude": 23.7925, "longitude": 90.4078},
        },
        "dropoffLocation": {
            "address": "Hazrat Shahjalal Airport",
            "coordinates": {"latitude": 23.8433, "longitude": 90.3978},
        },
        "distance": 10,
        "estimatedDuration": 30,
        "scheduledDateTime": (NOW + timedelta(days=1)).isoformat(),
    }
    payload.update(overrides)
    return payload


# ── API client ────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def seeded(session_factory) -> dict:
    """One passenger, one driver and one bookable vehicle."""
    async with session_factory() as session:
        passenger = await add_user(session, name="Nusrat Jahan")
        driver = await add_user(
            session, name="Kamal Uddin", role=UserRole.DRIVER, phone="+8801811000001"
        )
        vehicle = await add_vehicle(session, driver)
        await session.commit()
        return {
            "passenger_id": passenger.id,
            "driver_id": driver.id,
            "vehicle_id": vehicle.id,
        }


@pytest_asyncio.fixture
async def client(session_factory, redis_mock, clock) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient with DB, Redis and clock dependencies overridden."""
    from return_vehicle.api.app import create_app
    from return_vehicle.api.dependencies import get_clock, get_db, get_redis
    from return_vehicle.api.middleware import limiter

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _test_redis():
        return redis_mock

    limiter.reset()
    app = create_app()
    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_redis] = _test_redis
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
