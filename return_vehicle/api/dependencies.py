"""FastAPI dependency injection helpers."""

import redis.asyncio as aioredis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from return_vehicle.config import settings
from return_vehicle.domain.clock import Clock, SystemClock
from return_vehicle.infrastructure.database import async_session_factory
from return_vehicle.services.bookings import BookingService
from return_vehicle.services.users import UserService
from return_vehicle.services.vehicles import VehicleService

_redis_pool = aioredis.ConnectionPool.from_url(
    settings.redis_url, decode_responses=True
)
_clock = SystemClock()


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_redis() -> aioredis.Redis:
    """Return a Redis client backed by the shared connection pool."""
    return aioredis.Redis(connection_pool=_redis_pool)


def get_clock() -> Clock:
    return _clock


def get_booking_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
    clock: Clock = Depends(get_clock),
) -> BookingService:
    return BookingService(db, redis, clock)


def get_vehicle_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> VehicleService:
    return VehicleService(db, clock)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)
