"""
Booking lifecycle service
=========================

create_booking
--------------
Preconditions are checked in a fixed order and the first failure wins:

1. required fields present            -> MISSING_FIELDS
2. vehicle exists                     -> NOT_FOUND
3. vehicle active and available       -> VEHICLE_UNAVAILABLE
4. user exists                        -> NOT_FOUND
5. no confirmed / started booking for
   the vehicle within the window      -> SLOT_TAKEN
6. entity invariants at persist time  -> VALIDATION_ERROR

Steps 5-6 and the insert run under a per-vehicle Redis lock and commit
before the lock is released, so concurrent requests for the same vehicle
see each other's bookings.  A lock still held by another request after
``booking_lock_wait_seconds`` is BOOKING_IN_PROGRESS (retryable), never
SLOT_TAKEN.

update_status
-------------
Parses the target first (INVALID_STATUS before any read), then writes the
status and its side effects in one UPDATE (see ``plan_status_change``).
A move that makes the booking hold its slot (into confirmed / started from
any other status) takes the same lock and repeats the conflict check,
excluding the booking itself.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from return_vehicle.config import Settings, settings as default_settings
from return_vehicle.domain.availability import conflict_window
from return_vehicle.domain.clock import Clock, ensure_utc
from return_vehicle.domain.entities import (
    BookingDraft,
    Location,
    StatusChange,
    parse_booking_status,
    plan_rating,
    plan_status_change,
)
from return_vehicle.domain.enums import (
    BLOCKING_BOOKING_STATUSES,
    BookingStatus,
    CancelledBy,
    PaymentMethod,
)
from return_vehicle.domain.errors import (
    BookingInProgressError,
    DomainValidationError,
    MissingFieldsError,
    NotFoundError,
    SlotTakenError,
    VehicleUnavailableError,
)
from return_vehicle.domain.pricing import (
    PriceBreakdown,
    RateCard,
    calculate_price,
    describe_breakdown,
)
from return_vehicle.domain.search import Pagination
from return_vehicle.infrastructure.locks import LockNotAcquired, vehicle_booking_lock
from return_vehicle.infrastructure.models import BookingModel
from return_vehicle.infrastructure.repositories import (
    BookingRepository,
    UserRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)

REQUIRED_BOOKING_FIELDS = [
    "vehicle_id",
    "user_id",
    "pickup_location",
    "dropoff_location",
    "distance",
    "estimated_duration",
    "scheduled_date_time",
]


def _is_missing(value: Any) -> bool:
    # zero distance / duration counts as absent, like an empty string
    if value is None or value == "":
        return True
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0


def _missing(fields: dict[str, Any]) -> list[str]:
    return [name for name, value in fields.items() if _is_missing(value)]


@dataclass
class BookingRequest:
    vehicle_id: Optional[int] = None
    user_id: Optional[int] = None
    pickup_location: Optional[Location] = None
    dropoff_location: Optional[Location] = None
    distance: Optional[float] = None
    estimated_duration: Optional[float] = None
    scheduled_date_time: Optional[datetime] = None
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


@dataclass(frozen=True)
class PriceQuote:
    vehicle_id: int
    rate_card: RateCard
    pricing: PriceBreakdown
    breakdown: dict[str, str]


class BookingService:
    def __init__(
        self,
        session: AsyncSession,
        redis: aioredis.Redis,
        clock: Clock,
        config: Settings = default_settings,
    ):
        self.session = session
        self.redis = redis
        self.clock = clock
        self.config = config
        self.bookings = BookingRepository(session)
        self.vehicles = VehicleRepository(session)
        self.users = UserRepository(session)

    # ── Slot guard ────────────────────────────────────────────────

    @asynccontextmanager
    async def _vehicle_slot(self, vehicle_id: int):
        """Hold the per-vehicle booking lock for the duration of the block."""
        lock = vehicle_booking_lock(
            self.redis,
            vehicle_id,
            ttl_seconds=self.config.booking_lock_ttl_seconds,
            wait_seconds=self.config.booking_lock_wait_seconds,
        )
        try:
            async with lock:
                yield
        except LockNotAcquired:
            logger.warning("Booking lock busy for vehicle %s", vehicle_id)
            raise BookingInProgressError(
                "Another booking for this vehicle is being processed; retry shortly",
                details={"vehicleId": vehicle_id},
            ) from None

    async def _ensure_slot_free(
        self,
        vehicle_id: int,
        scheduled_at: datetime,
        exclude_id: Optional[int] = None,
    ) -> None:
        window = timedelta(minutes=self.config.conflict_window_minutes)
        start, end = conflict_window(scheduled_at, window)
        conflicts = await self.bookings.find_conflicts(
            vehicle_id, start, end, exclude_id=exclude_id
        )
        if conflicts:
            logger.warning("Slot taken for vehicle %s at %s", vehicle_id, scheduled_at)
            raise SlotTakenError(
                "Vehicle is already booked for the selected time slot",
                details={
                    "conflictingBookingIds": [b.id for b in conflicts],
                    "suggestedTimes": [],
                },
            )

    # ── Creation ──────────────────────────────────────────────────

    async def create_booking(self, request: BookingRequest) -> BookingModel:
        missing = _missing(
            {name: getattr(request, name) for name in REQUIRED_BOOKING_FIELDS}
        )
        if missing:
            logger.warning("Booking rejected, missing fields: %s", missing)
            raise MissingFieldsError(missing, REQUIRED_BOOKING_FIELDS)

        vehicle = await self.vehicles.get_by_id(request.vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", request.vehicle_id)

        if not vehicle.availability.accepts_bookings():
            raise VehicleUnavailableError("Vehicle is not available for booking")

        user = await self.users.get_by_id(request.user_id)
        if user is None:
            raise NotFoundError("User", request.user_id)

        scheduled_at = ensure_utc(request.scheduled_date_time)
        async with self._vehicle_slot(vehicle.id):
            await self._ensure_slot_free(vehicle.id, scheduled_at)

            rate_card = vehicle.rate_card
            draft = BookingDraft(
                user_id=user.id,
                driver_id=vehicle.driver_id,
                vehicle_id=vehicle.id,
                pickup=request.pickup_location,
                dropoff=request.dropoff_location,
                distance_km=request.distance,
                estimated_duration_min=request.estimated_duration,
                scheduled_at=scheduled_at,
                pricing=calculate_price(
                    rate_card, request.distance, request.estimated_duration
                ),
                currency=rate_card.currency,
                payment_method=request.payment_method or PaymentMethod.CASH,
                special_requests=request.special_requests,
                notes=request.notes,
            )

            now = self.clock.now()
            draft.validate(now)

            booking = BookingModel(
                **draft.as_columns(now),
                user=user,
                driver=vehicle.driver,
                vehicle=vehicle,
            )
            await self.bookings.create(booking)
            await self.session.commit()

        logger.info(
            "Booking %s created: vehicle=%s user=%s total=%s",
            booking.id,
            vehicle.id,
            user.id,
            booking.total_price,
        )
        return booking

    # ── Pricing quote ─────────────────────────────────────────────

    async def quote_price(
        self,
        vehicle_id: Optional[int],
        distance: Optional[float],
        estimated_duration: Optional[float],
    ) -> PriceQuote:
        missing = _missing(
            {
                "vehicle_id": vehicle_id,
                "distance": distance,
                "estimated_duration": estimated_duration,
            }
        )
        if missing:
            raise MissingFieldsError(
                missing, ["vehicle_id", "distance", "estimated_duration"]
            )

        vehicle = await self.vehicles.get_by_id(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", vehicle_id)

        rate_card = vehicle.rate_card
        pricing = calculate_price(rate_card, distance, estimated_duration)
        return PriceQuote(
            vehicle_id=vehicle.id,
            rate_card=rate_card,
            pricing=pricing,
            breakdown=describe_breakdown(
                rate_card, pricing, distance, estimated_duration
            ),
        )

    # ── Status lifecycle ──────────────────────────────────────────

    async def update_status(
        self,
        booking_id: int,
        status: Any,
        reason: Optional[str] = None,
        updated_by: Optional[str] = None,
    ) -> BookingModel:
        change = StatusChange.parse(status, reason, updated_by)

        booking = await self.get_booking(booking_id)
        previous = BookingStatus(booking.status)
        patch = plan_status_change(
            previous,
            change,
            now=self.clock.now(),
            strict=self.config.strict_status_transitions,
            trip_start_time=booking.trip_start_time,
        )

        if (
            change.target in BLOCKING_BOOKING_STATUSES
            and previous not in BLOCKING_BOOKING_STATUSES
        ):
            # the booking starts holding its slot: re-check under the lock
            async with self._vehicle_slot(booking.vehicle_id):
                await self._ensure_slot_free(
                    booking.vehicle_id,
                    ensure_utc(booking.scheduled_at),
                    exclude_id=booking.id,
                )
                await self.bookings.update(booking, patch)
                await self.session.commit()
        else:
            await self.bookings.update(booking, patch)

        logger.info(
            "Booking %s status %s -> %s",
            booking.id,
            previous.value,
            change.target.value,
        )
        return booking

    async def rate_booking(
        self,
        booking_id: int,
        by: str,
        rating: int,
        review: Optional[str] = None,
    ) -> BookingModel:
        try:
            rater = CancelledBy(by)
        except ValueError:
            raise DomainValidationError("by must be 'user' or 'driver'", path="by") from None

        booking = await self.get_booking(booking_id)
        patch = plan_rating(booking.status, rater, rating, review, self.clock.now())
        return await self.bookings.update(booking, patch)

    # ── Queries ───────────────────────────────────────────────────

    async def get_booking(self, booking_id: int) -> BookingModel:
        booking = await self.bookings.get_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    @staticmethod
    def _status_filter(status: Optional[str]) -> Optional[BookingStatus]:
        if not status or status == "all":
            return None
        return parse_booking_status(status)

    async def list_for_user(
        self, user_id: int, status: Optional[str] = None
    ) -> list[BookingModel]:
        return await self.bookings.find(
            user_id=user_id, status=self._status_filter(status)
        )

    async def list_for_driver(
        self, driver_id: int, status: Optional[str] = None
    ) -> list[BookingModel]:
        return await self.bookings.find(
            driver_id=driver_id, status=self._status_filter(status)
        )

    async def list_all(
        self, status: Optional[str] = None, page: int = 1, limit: int = 10
    ) -> tuple[list[BookingModel], Pagination]:
        status_filter = self._status_filter(status)
        items = await self.bookings.find(
            status=status_filter, offset=(page - 1) * limit, limit=limit
        )
        total = await self.bookings.count(status=status_filter)
        return items, Pagination.build(page, limit, total)
