"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``users``            -- passengers, drivers and admins keyed by provider UID
* ``vehicles``         -- listed vehicles with rate card and availability
* ``vehicle_features`` -- one row per feature tag (indexed for match-any search)
* ``bookings``         -- trip bookings with pricing snapshot and lifecycle

Nested sub-records that are never filtered on (route samples, ratings,
driver details, weekly schedule days) are JSON columns; everything the
search and conflict queries touch is a plain indexed column.

Indexes
-------
* **B-Tree** on ``bookings(vehicle_id, scheduled_at)`` and ``status`` for
  the slot-conflict query.
* **B-Tree** on the vehicle search columns (type, city/area, availability
  flags, status, price_per_km, rating).
"""

from __future__ import annotations

import enum
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from .database import Base
from return_vehicle.domain.availability import VehicleAvailability
from return_vehicle.domain.clock import utc_now
from return_vehicle.domain.enums import (
    AuthProvider,
    BookingStatus,
    CancelledBy,
    LuggageSize,
    PaymentMethod,
    PaymentStatus,
    UserRole,
    VehicleStatus,
    VehicleType,
    Weekday,
)
from return_vehicle.domain.pricing import RateCard


DOCUMENT_KINDS = ("registration", "insurance", "fitness")


def _enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Persist enum *values* (``"no_show"``), not member names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
    )


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_uid = Column(String(128), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(120), nullable=False)
    phone = Column(String(32), nullable=False, default="")
    role = Column(_enum(UserRole, "userrole"), default=UserRole.PASSENGER, nullable=False)
    auth_provider = Column(
        _enum(AuthProvider, "authprovider"), default=AuthProvider.EMAIL, nullable=False
    )
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    profile_complete = Column(Boolean, default=False, nullable=False)
    driver_details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (Index("idx_users_role", "role"),)


class VehicleFeatureModel(Base):
    __tablename__ = "vehicle_features"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(
        Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False
    )
    feature = Column(String(32), nullable=False)

    __table_args__ = (
        Index("idx_vehicle_features_feature", "feature"),
        Index("idx_vehicle_features_vehicle", "vehicle_id"),
    )


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    type = Column(_enum(VehicleType, "vehicletype"), nullable=False)

    brand = Column(String(60), nullable=False)
    model = Column(String(60), nullable=False)
    year = Column(Integer, nullable=False)
    plate_number = Column(String(20), unique=True, nullable=False)
    color = Column(String(30), nullable=False)

    passenger_capacity = Column(Integer, nullable=False)
    luggage_size = Column(
        _enum(LuggageSize, "luggagesize"), default=LuggageSize.MEDIUM, nullable=False
    )

    # Rate card
    base_price = Column(Float, nullable=False)
    price_per_km = Column(Float, nullable=False)
    price_per_hour = Column(Float, nullable=False)
    minimum_fare = Column(Float, nullable=False)
    currency = Column(String(3), default="BDT", nullable=False)

    # Location
    city = Column(String(80), nullable=False)
    area = Column(String(80), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(String(255), nullable=True)

    # Availability
    is_active = Column(Boolean, default=True, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    available_days = Column(
        JSON, default=lambda: [d.value for d in Weekday], nullable=False
    )
    available_hours_start = Column(String(5), default="06:00", nullable=False)
    available_hours_end = Column(String(5), default="22:00", nullable=False)

    status = Column(
        _enum(VehicleStatus, "vehiclestatus"), default=VehicleStatus.PENDING, nullable=False
    )
    approved_at = Column(DateTime(timezone=True), nullable=True)

    # Aggregates
    total_trips = Column(Integer, default=0, nullable=False)
    total_earnings = Column(Float, default=0.0, nullable=False)
    total_distance = Column(Float, default=0.0, nullable=False)
    rating_average = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)

    # Verification documents (registration / insurance / fitness) and photos
    documents = Column(JSON, default=dict, nullable=False)
    images = Column(JSON, default=list, nullable=False)

    description = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    driver = relationship(UserModel, lazy="selectin")
    feature_rows = relationship(
        VehicleFeatureModel,
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=VehicleFeatureModel.id,
    )

    __table_args__ = (
        Index("idx_vehicles_type", "type"),
        Index("idx_vehicles_location", "city", "area"),
        Index("idx_vehicles_availability", "is_active", "is_available"),
        Index("idx_vehicles_status", "status"),
        Index("idx_vehicles_driver", "driver_id"),
        Index("idx_vehicles_rating", "rating_average"),
        Index("idx_vehicles_price_per_km", "price_per_km"),
    )

    # ── Domain views ──────────────────────────────────────────────

    @property
    def features(self) -> list[str]:
        return [row.feature for row in self.feature_rows]

    def set_features(self, features: list[str]) -> None:
        """Replace the feature set, touching only rows that changed."""
        wanted = list(dict.fromkeys(features))
        self.feature_rows = [r for r in self.feature_rows if r.feature in wanted]
        present = {r.feature for r in self.feature_rows}
        for feature in wanted:
            if feature not in present:
                self.feature_rows.append(VehicleFeatureModel(feature=feature))

    @property
    def documents_complete(self) -> bool:
        docs = self.documents or {}
        return all((docs.get(kind) or {}).get("number") for kind in DOCUMENT_KINDS)

    @property
    def primary_image(self) -> Optional[str]:
        images = self.images or []
        for image in images:
            if image.get("isPrimary"):
                return image.get("url")
        return images[0].get("url") if images else None

    @property
    def rate_card(self) -> RateCard:
        return RateCard(
            base_price=self.base_price,
            price_per_km=self.price_per_km,
            price_per_hour=self.price_per_hour,
            minimum_fare=self.minimum_fare,
            currency=self.currency,
        )

    @property
    def availability(self) -> VehicleAvailability:
        return VehicleAvailability(
            is_active=self.is_active,
            is_available=self.is_available,
            available_days=tuple(Weekday(d) for d in self.available_days or ()),
            hours_start=self.available_hours_start,
            hours_end=self.available_hours_end,
        )


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # Snapshot of the vehicle's driver at booking time
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)

    # Trip details
    pickup_address = Column(String(255), nullable=False)
    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    dropoff_address = Column(String(255), nullable=False)
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)
    distance_km = Column(Float, nullable=False)
    estimated_duration_min = Column(Float, nullable=False)

    scheduled_at = Column(DateTime(timezone=True), nullable=False)

    # Pricing snapshot
    base_price = Column(Float, nullable=False)
    distance_price = Column(Float, nullable=False)
    time_price = Column(Float, default=0.0, nullable=False)
    total_price = Column(Float, nullable=False)
    currency = Column(String(3), default="BDT", nullable=False)

    status = Column(
        _enum(BookingStatus, "bookingstatus"),
        default=BookingStatus.PENDING,
        nullable=False,
    )

    # Trip progress
    trip_start_time = Column(DateTime(timezone=True), nullable=True)
    trip_end_time = Column(DateTime(timezone=True), nullable=True)
    actual_distance_km = Column(Float, nullable=True)
    actual_duration_min = Column(Float, nullable=True)
    route = Column(JSON, default=list, nullable=False)

    # Payment
    payment_method = Column(
        _enum(PaymentMethod, "paymentmethod"), default=PaymentMethod.CASH, nullable=False
    )
    payment_status = Column(
        _enum(PaymentStatus, "paymentstatus"), default=PaymentStatus.PENDING, nullable=False
    )
    transaction_id = Column(String(64), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    special_requests = Column(String(500), nullable=True)
    notes = Column(String(1000), nullable=True)

    # {"rating": int, "review": str | None, "rated_at": iso str}
    user_rating = Column(JSON, nullable=True)
    driver_rating = Column(JSON, nullable=True)

    cancellation_reason = Column(String(500), nullable=True)
    cancelled_by = Column(_enum(CancelledBy, "cancelledby"), nullable=True)

    booked_at = Column(DateTime(timezone=True), default=utc_now)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    user = relationship(UserModel, foreign_keys=[user_id], lazy="selectin")
    driver = relationship(UserModel, foreign_keys=[driver_id], lazy="selectin")
    vehicle = relationship(VehicleModel, lazy="selectin")

    __table_args__ = (
        Index("idx_bookings_user", "user_id", "created_at"),
        Index("idx_bookings_driver", "driver_id", "created_at"),
        Index("idx_bookings_vehicle_schedule", "vehicle_id", "scheduled_at"),
        Index("idx_bookings_status", "status"),
        Index("idx_bookings_scheduled", "scheduled_at"),
    )

    @property
    def total_trip_minutes(self) -> Optional[float]:
        """Actual trip time once finished, else the estimate."""
        if self.actual_duration_min is not None:
            return self.actual_duration_min
        return self.estimated_duration_min
