"""Unit tests for the invariants a booking draft enforces at persist time."""

from datetime import datetime, timedelta, timezone

import pytest

from return_vehicle.domain.entities import BookingDraft, Location
from return_vehicle.domain.enums import BookingStatus, PaymentStatus
from return_vehicle.domain.errors import DomainValidationError, ErrorCode
from return_vehicle.domain.pricing import RateCard, calculate_price

NOW = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)
CARD = RateCard(base_price=100, price_per_km=15, price_per_hour=60, minimum_fare=150)


def _draft(**overrides) -> BookingDraft:
    fields = dict(
        user_id=1,
        driver_id=2,
        vehicle_id=3,
        pickup=Location("Gulshan 2 Circle", 23.7925, 90.4078),
        dropoff=Location("Hazrat Shahjalal Airport", 23.8433, 90.3978),
        distance_km=10,
        estimated_duration_min=30,
        scheduled_at=NOW + timedelta(hours=3),
        pricing=calculate_price(CARD, 10, 30),
    )
    fields.update(overrides)
    return BookingDraft(**fields)


class TestValidate:
    def test_valid_draft_passes(self):
        _draft().validate(NOW)

    def test_past_schedule_rejected(self):
        with pytest.raises(DomainValidationError) as exc:
            _draft(scheduled_at=NOW - timedelta(minutes=1)).validate(NOW)
        assert exc.value.code is ErrorCode.VALIDATION_ERROR
        assert exc.value.path == "scheduledDateTime"

    def test_schedule_equal_to_now_rejected(self):
        with pytest.raises(DomainValidationError):
            _draft(scheduled_at=NOW).validate(NOW)

    def test_same_pickup_and_dropoff_rejected(self):
        same = Location("Gulshan 2 Circle", 23.7925, 90.4078)
        with pytest.raises(DomainValidationError) as exc:
            _draft(pickup=same, dropoff=same).validate(NOW)
        assert exc.value.path == "tripDetails"

    def test_past_schedule_reported_before_same_address(self):
        same = Location("Gulshan 2 Circle", 23.7925, 90.4078)
        with pytest.raises(DomainValidationError) as exc:
            _draft(
                pickup=same, dropoff=same, scheduled_at=NOW - timedelta(days=1)
            ).validate(NOW)
        assert exc.value.path == "scheduledDateTime"

    def test_negative_distance_rejected(self):
        with pytest.raises(DomainValidationError):
            _draft(distance_km=-3).validate(NOW)

    def test_blank_address_rejected(self):
        with pytest.raises(DomainValidationError) as exc:
            _draft(pickup=Location("  ", 23.7, 90.4)).validate(NOW)
        assert exc.value.path == "tripDetails.pickupLocation.address"


class TestColumns:
    def test_new_booking_is_pending_with_pending_payment(self):
        columns = _draft().as_columns(NOW)
        assert columns["status"] is BookingStatus.PENDING
        assert columns["payment_status"] is PaymentStatus.PENDING
        assert columns["booked_at"] == NOW
        assert columns["total_price"] == 400  # 100 + 150 + 30 min x 60/h
