"""
Domain error hierarchy.

Every failure the core reports carries an ``ErrorCode``; the API layer maps
codes to HTTP status codes in one place (``return_vehicle.api.errors``).
"""

from __future__ import annotations

import enum
from typing import Any, Optional


class ErrorCode(str, enum.Enum):
    MISSING_FIELDS = "MISSING_FIELDS"
    NOT_FOUND = "NOT_FOUND"
    VEHICLE_UNAVAILABLE = "VEHICLE_UNAVAILABLE"
    SLOT_TAKEN = "SLOT_TAKEN"
    BOOKING_IN_PROGRESS = "BOOKING_IN_PROGRESS"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    INTERNAL = "INTERNAL"


class DomainError(Exception):
    """Base class for every error the booking core raises."""

    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MissingFieldsError(DomainError):
    code = ErrorCode.MISSING_FIELDS

    def __init__(self, missing: list[str], required: list[str]):
        super().__init__(
            "Missing required fields",
            details={"missing": missing, "required": required},
        )
        self.missing = missing


class NotFoundError(DomainError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found", details={"id": entity_id})
        self.entity = entity


class VehicleUnavailableError(DomainError):
    code = ErrorCode.VEHICLE_UNAVAILABLE


class SlotTakenError(DomainError):
    code = ErrorCode.SLOT_TAKEN


class BookingInProgressError(DomainError):
    """Another request holds the vehicle's booking lock; safe to retry."""

    code = ErrorCode.BOOKING_IN_PROGRESS


class InvalidStatusError(DomainError):
    code = ErrorCode.INVALID_STATUS


class InvalidStateTransition(DomainError):
    """Raised when a booking status change violates the state machine."""

    code = ErrorCode.INVALID_TRANSITION


class DomainValidationError(DomainError):
    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, *, path: Optional[str] = None):
        super().__init__(message, details={"path": path} if path else None)
        self.path = path


class DuplicateKeyError(DomainError):
    code = ErrorCode.DUPLICATE_KEY


class StoreError(DomainError):
    """Unexpected persistence failure; never retried."""

    code = ErrorCode.INTERNAL
