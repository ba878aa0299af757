"""Unit tests for booking status transitions and their side effects."""

from datetime import datetime, timedelta, timezone

import pytest

from return_vehicle.domain.entities import (
    StatusChange,
    can_transition,
    plan_rating,
    plan_status_change,
)
from return_vehicle.domain.enums import BookingStatus, CancelledBy, PaymentStatus
from return_vehicle.domain.errors import (
    DomainValidationError,
    ErrorCode,
    InvalidStateTransition,
    InvalidStatusError,
)

NOW = datetime(2026, 10, 19, 6, 0, tzinfo=timezone.utc)


def _change(status, reason=None, updated_by=None):
    return StatusChange.parse(status, reason, updated_by)


class TestSideEffects:
    def test_confirm_stamps_confirmed_at(self):
        patch = plan_status_change(BookingStatus.PENDING, _change("confirmed"), now=NOW)
        assert patch == {"status": BookingStatus.CONFIRMED, "confirmed_at": NOW}

    def test_reject_records_reason(self):
        patch = plan_status_change(
            BookingStatus.PENDING, _change("rejected", "Vehicle in service"), now=NOW
        )
        assert patch["rejected_at"] == NOW
        assert patch["cancellation_reason"] == "Vehicle in service"

    def test_cancel_records_reason_and_actor(self):
        patch = plan_status_change(
            BookingStatus.CONFIRMED,
            _change("cancelled", "Plans changed", "user"),
            now=NOW,
        )
        assert patch["status"] is BookingStatus.CANCELLED
        assert patch["cancelled_at"] == NOW
        assert patch["cancellation_reason"] == "Plans changed"
        assert patch["cancelled_by"] is CancelledBy.USER

    def test_start_stamps_trip_start(self):
        patch = plan_status_change(BookingStatus.CONFIRMED, _change("started"), now=NOW)
        assert patch["trip_start_time"] == NOW

    def test_complete_marks_payment_paid(self):
        started = NOW - timedelta(minutes=45)
        patch = plan_status_change(
            BookingStatus.STARTED, _change("completed"), now=NOW, trip_start_time=started
        )
        assert patch["trip_end_time"] == NOW
        assert patch["payment_status"] is PaymentStatus.PAID
        assert patch["paid_at"] == NOW
        assert patch["actual_duration_min"] == 45

    def test_no_show_only_sets_status(self):
        patch = plan_status_change(BookingStatus.PENDING, _change("no_show"), now=NOW)
        assert patch == {"status": BookingStatus.NO_SHOW}


class TestPermissiveMode:
    def test_completed_to_completed_restamps_payment(self):
        patch = plan_status_change(BookingStatus.COMPLETED, _change("completed"), now=NOW)
        assert patch["payment_status"] is PaymentStatus.PAID
        assert patch["paid_at"] == NOW

    def test_completed_to_pending_is_accepted(self):
        patch = plan_status_change(BookingStatus.COMPLETED, _change("pending"), now=NOW)
        assert patch == {"status": BookingStatus.PENDING}


class TestStrictMode:
    @pytest.mark.parametrize(
        "current, target",
        [
            (BookingStatus.PENDING, BookingStatus.CONFIRMED),
            (BookingStatus.PENDING, BookingStatus.NO_SHOW),
            (BookingStatus.CONFIRMED, BookingStatus.STARTED),
            (BookingStatus.STARTED, BookingStatus.COMPLETED),
            (BookingStatus.STARTED, BookingStatus.CANCELLED),
        ],
    )
    def test_legal_moves(self, current, target):
        assert can_transition(current, target)
        patch = plan_status_change(current, StatusChange(target), now=NOW, strict=True)
        assert patch["status"] is target

    @pytest.mark.parametrize(
        "current, target",
        [
            (BookingStatus.COMPLETED, BookingStatus.PENDING),
            (BookingStatus.COMPLETED, BookingStatus.COMPLETED),
            (BookingStatus.PENDING, BookingStatus.STARTED),
            (BookingStatus.CANCELLED, BookingStatus.CONFIRMED),
            (BookingStatus.CONFIRMED, BookingStatus.NO_SHOW),
        ],
    )
    def test_illegal_moves_raise(self, current, target):
        with pytest.raises(InvalidStateTransition) as exc:
            plan_status_change(current, StatusChange(target), now=NOW, strict=True)
        assert exc.value.code is ErrorCode.INVALID_TRANSITION


class TestParsing:
    def test_unknown_status_is_invalid_status(self):
        with pytest.raises(InvalidStatusError) as exc:
            _change("teleported")
        assert "pending" in exc.value.details["validStatuses"]

    def test_unknown_actor_is_validation_error(self):
        with pytest.raises(DomainValidationError):
            _change("cancelled", updated_by="robot")

    def test_actor_ignored_outside_cancellation(self):
        change = _change("confirmed", updated_by="uid-kamal")
        assert change.target is BookingStatus.CONFIRMED
        assert change.updated_by is None

    def test_empty_reason_is_dropped(self):
        assert _change("rejected", "").reason is None


class TestRating:
    def test_user_rates_driver(self):
        patch = plan_rating(BookingStatus.COMPLETED, CancelledBy.USER, 5, "Smooth", NOW)
        assert patch == {
            "user_rating": {"rating": 5, "review": "Smooth", "rated_at": NOW.isoformat()}
        }

    def test_driver_rates_user(self):
        patch = plan_rating(BookingStatus.COMPLETED, CancelledBy.DRIVER, 4, None, NOW)
        assert patch["driver_rating"]["rating"] == 4

    def test_requires_completed_booking(self):
        with pytest.raises(InvalidStateTransition):
            plan_rating(BookingStatus.CONFIRMED, CancelledBy.USER, 5, None, NOW)

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_range(self, rating):
        with pytest.raises(DomainValidationError):
            plan_rating(BookingStatus.COMPLETED, CancelledBy.USER, rating, None, NOW)
