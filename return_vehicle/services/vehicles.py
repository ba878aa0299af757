"""Vehicle listing, approval, availability and search."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from return_vehicle.config import Settings, settings as default_settings
from return_vehicle.domain.availability import conflict_window
from return_vehicle.domain.clock import Clock
from return_vehicle.domain.enums import UserRole, VehicleStatus
from return_vehicle.domain.errors import (
    DomainValidationError,
    DuplicateKeyError,
    NotFoundError,
)
from return_vehicle.domain.search import Pagination, VehicleSearchCriteria
from return_vehicle.infrastructure.models import VehicleModel
from return_vehicle.infrastructure.repositories import (
    BookingRepository,
    UserRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)


def normalize_plate(plate: str) -> str:
    return plate.strip().upper()


@dataclass(frozen=True)
class AvailabilityReport:
    vehicle_id: int
    at: datetime
    bookable: bool
    within_schedule: bool
    conflicting_booking_ids: list[int]


@dataclass(frozen=True)
class FilterOptions:
    vehicle_types: list[str]
    cities: list[str]
    features: list[str]
    min_price: float
    max_price: float


class VehicleService:
    def __init__(
        self,
        session: AsyncSession,
        clock: Clock,
        config: Settings = default_settings,
    ):
        self.clock = clock
        self.config = config
        self.vehicles = VehicleRepository(session)
        self.users = UserRepository(session)
        self.bookings = BookingRepository(session)

    async def create_vehicle(
        self, driver_id: int, fields: dict[str, Any]
    ) -> VehicleModel:
        driver = await self.users.get_by_id(driver_id)
        if driver is None:
            raise NotFoundError("Driver", driver_id)
        if driver.role != UserRole.DRIVER:
            raise DomainValidationError("User is not a driver", path="driver")

        fields = dict(fields)
        features = fields.pop("features", [])
        fields["plate_number"] = normalize_plate(fields["plate_number"])
        await self._ensure_plate_free(fields["plate_number"])

        vehicle = VehicleModel(**fields, driver=driver)
        vehicle.set_features(features)
        await self.vehicles.create(vehicle)
        logger.info("Vehicle %s created: plate=%s", vehicle.id, vehicle.plate_number)
        return vehicle

    async def _ensure_plate_free(
        self, plate: str, exclude_id: Optional[int] = None
    ) -> None:
        existing = await self.vehicles.get_by_plate(plate)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateKeyError("Vehicle with this plate number already exists")

    async def get_vehicle(self, vehicle_id: int) -> VehicleModel:
        vehicle = await self.vehicles.get_by_id(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", vehicle_id)
        return vehicle

    async def list_by_driver(self, driver_id: int) -> list[VehicleModel]:
        return await self.vehicles.get_by_driver(driver_id)

    async def update_vehicle(
        self, vehicle_id: int, patch: dict[str, Any]
    ) -> VehicleModel:
        """Partial update; *patch* holds only the columns the caller set."""
        vehicle = await self.get_vehicle(vehicle_id)
        patch = dict(patch)
        if "plate_number" in patch:
            patch["plate_number"] = normalize_plate(patch["plate_number"])
            await self._ensure_plate_free(patch["plate_number"], exclude_id=vehicle.id)
        if "documents" in patch:
            patch["documents"] = {**(vehicle.documents or {}), **patch["documents"]}
        return await self.vehicles.update(vehicle, patch)

    async def set_status(
        self, vehicle_id: int, status: VehicleStatus
    ) -> VehicleModel:
        vehicle = await self.get_vehicle(vehicle_id)
        patch: dict[str, Any] = {"status": status}
        if status is VehicleStatus.APPROVED:
            if not vehicle.documents_complete:
                raise DomainValidationError(
                    "Vehicle documents must be complete before approval",
                    path="documents",
                )
            patch["approved_at"] = self.clock.now()
        logger.info("Vehicle %s status -> %s", vehicle.id, status.value)
        return await self.vehicles.update(vehicle, patch)

    async def search(
        self, criteria: VehicleSearchCriteria
    ) -> tuple[list[VehicleModel], Pagination]:
        items, total = await self.vehicles.search(criteria)
        return items, Pagination.build(criteria.page, criteria.limit, total)

    async def filter_options(self) -> FilterOptions:
        types = await self.vehicles.distinct("type")
        cities = await self.vehicles.distinct("city")
        features = await self.vehicles.distinct_features()
        price_range = await self.vehicles.price_per_km_range() or (0.0, 100.0)
        return FilterOptions(
            vehicle_types=sorted(t.value for t in types),
            cities=sorted(cities),
            features=sorted(features),
            min_price=price_range[0],
            max_price=price_range[1],
        )

    async def check_availability(
        self, vehicle_id: int, at: datetime
    ) -> AvailabilityReport:
        vehicle = await self.get_vehicle(vehicle_id)
        availability = vehicle.availability

        window = timedelta(minutes=self.config.conflict_window_minutes)
        start, end = conflict_window(at, window)
        conflicts = await self.bookings.find_conflicts(vehicle.id, start, end)

        return AvailabilityReport(
            vehicle_id=vehicle.id,
            at=at,
            bookable=availability.accepts_bookings() and not conflicts,
            within_schedule=availability.is_open_at(at, self.config.timezone),
            conflicting_booking_ids=[b.id for b in conflicts],
        )
