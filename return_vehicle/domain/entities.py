"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on bookings: ``plan_status_change`` looks the requested
  move up in ``BOOKING_TRANSITIONS`` and returns the column patch (status
  plus timestamp / payment side effects) to be written in one UPDATE.
- ``BookingDraft.validate`` holds the invariants checked at persistence
  time (future schedule, distinct pickup / dropoff).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .clock import ensure_utc
from .enums import (
    BOOKING_TRANSITIONS,
    BookingStatus,
    CancelledBy,
    PaymentMethod,
    PaymentStatus,
)
from .errors import DomainValidationError, InvalidStateTransition, InvalidStatusError
from .pricing import PriceBreakdown


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    address: str
    latitude: float
    longitude: float

    def validate(self, path: str) -> None:
        if not self.address or not self.address.strip():
            raise DomainValidationError("Address is required", path=f"{path}.address")
        if not -90 <= self.latitude <= 90 or not -180 <= self.longitude <= 180:
            raise DomainValidationError(
                "Coordinates out of range", path=f"{path}.coordinates"
            )


@dataclass(frozen=True)
class StatusChange:
    """A requested move of a booking to ``target``."""

    target: BookingStatus
    reason: Optional[str] = None
    updated_by: Optional[CancelledBy] = None

    @classmethod
    def parse(
        cls,
        status: Any,
        reason: Optional[str] = None,
        updated_by: Optional[str] = None,
    ) -> "StatusChange":
        target = parse_booking_status(status)
        # the actor is only recorded on cancellation; other moves ignore it
        return cls(
            target=target,
            reason=reason or None,
            updated_by=(
                _parse_cancelled_by(updated_by)
                if target is BookingStatus.CANCELLED
                else None
            ),
        )


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class BookingDraft:
    user_id: int
    driver_id: int
    vehicle_id: int
    pickup: Location
    dropoff: Location
    distance_km: float
    estimated_duration_min: float
    scheduled_at: datetime
    pricing: PriceBreakdown
    currency: str = "BDT"
    payment_method: PaymentMethod = PaymentMethod.CASH
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    status: BookingStatus = field(default=BookingStatus.PENDING, init=False)

    def validate(self, now: datetime) -> None:
        """Invariants enforced at the moment of persistence."""
        if ensure_utc(self.scheduled_at) <= ensure_utc(now):
            raise DomainValidationError(
                "Scheduled time must be in the future", path="scheduledDateTime"
            )
        if self.pickup.address == self.dropoff.address:
            raise DomainValidationError(
                "Pickup and dropoff locations cannot be the same",
                path="tripDetails",
            )
        if self.distance_km <= 0:
            raise DomainValidationError(
                "Distance must be positive", path="tripDetails.distance"
            )
        if self.estimated_duration_min <= 0:
            raise DomainValidationError(
                "Estimated duration must be positive",
                path="tripDetails.estimatedDuration",
            )
        self.pickup.validate("tripDetails.pickupLocation")
        self.dropoff.validate("tripDetails.dropoffLocation")

    def as_columns(self, now: datetime) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "driver_id": self.driver_id,
            "vehicle_id": self.vehicle_id,
            "pickup_address": self.pickup.address,
            "pickup_lat": self.pickup.latitude,
            "pickup_lng": self.pickup.longitude,
            "dropoff_address": self.dropoff.address,
            "dropoff_lat": self.dropoff.latitude,
            "dropoff_lng": self.dropoff.longitude,
            "distance_km": self.distance_km,
            "estimated_duration_min": self.estimated_duration_min,
            "scheduled_at": ensure_utc(self.scheduled_at),
            "base_price": self.pricing.base_price,
            "distance_price": self.pricing.distance_price,
            "time_price": self.pricing.time_price,
            "total_price": self.pricing.total_price,
            "currency": self.currency,
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_status": PaymentStatus.PENDING,
            "special_requests": self.special_requests,
            "notes": self.notes,
            "booked_at": now,
        }


# ── State machine ─────────────────────────────────────────────────────


def parse_booking_status(value: Any) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        raise InvalidStatusError(
            f"Invalid status: {value!r}",
            details={"validStatuses": [s.value for s in BookingStatus]},
        ) from None


def _parse_cancelled_by(value: Optional[str]) -> Optional[CancelledBy]:
    if not value:
        return None
    try:
        return CancelledBy(value)
    except ValueError:
        raise DomainValidationError(
            f"updatedBy must be one of {[c.value for c in CancelledBy]}",
            path="updatedBy",
        ) from None


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, set())


def plan_status_change(
    current: BookingStatus,
    change: StatusChange,
    *,
    now: datetime,
    strict: bool = False,
    trip_start_time: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Return the column patch for moving a booking from *current* to
    ``change.target``.

    With ``strict=False`` any target is accepted regardless of the current
    status (completed -> completed re-stamps the payment); with
    ``strict=True`` moves outside ``BOOKING_TRANSITIONS`` raise.
    """
    target = change.target
    if strict and not can_transition(BookingStatus(current), target):
        raise InvalidStateTransition(
            f"Cannot transition from {BookingStatus(current).value} to {target.value}"
        )

    patch: dict[str, Any] = {"status": target}

    if target is BookingStatus.CONFIRMED:
        patch["confirmed_at"] = now
    elif target is BookingStatus.REJECTED:
        patch["rejected_at"] = now
        if change.reason:
            patch["cancellation_reason"] = change.reason
    elif target is BookingStatus.CANCELLED:
        patch["cancelled_at"] = now
        if change.reason:
            patch["cancellation_reason"] = change.reason
        if change.updated_by:
            patch["cancelled_by"] = change.updated_by
    elif target is BookingStatus.STARTED:
        patch["trip_start_time"] = now
    elif target is BookingStatus.COMPLETED:
        patch["trip_end_time"] = now
        patch["payment_status"] = PaymentStatus.PAID
        patch["paid_at"] = now
        if trip_start_time is not None:
            elapsed = ensure_utc(now) - ensure_utc(trip_start_time)
            patch["actual_duration_min"] = round(elapsed.total_seconds() / 60)

    return patch


# ── Ratings ───────────────────────────────────────────────────────────


def plan_rating(
    status: BookingStatus,
    by: CancelledBy,
    rating: int,
    review: Optional[str],
    now: datetime,
) -> dict[str, Any]:
    """Patch for a user->driver (``by=user``) or driver->user rating."""
    if BookingStatus(status) is not BookingStatus.COMPLETED:
        raise InvalidStateTransition("Only completed bookings can be rated")
    if not 1 <= rating <= 5:
        raise DomainValidationError("Rating must be between 1 and 5", path="rating")
    if by is CancelledBy.ADMIN:
        raise DomainValidationError("Admins cannot rate bookings", path="by")

    record = {"rating": rating, "review": review, "rated_at": now.isoformat()}
    column = "user_rating" if by is CancelledBy.USER else "driver_rating"
    return {column: record}
