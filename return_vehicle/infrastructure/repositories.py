"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only: create, get-by-id, filtered find, patch
update, count and distinct.  Referenced rows (driver, user, vehicle) are
expanded through ``selectin`` relationships on the models.

SQLAlchemy failures surface as ``StoreError`` (``INTERNAL``); a unique
violation on the plate number becomes ``DuplicateKeyError``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingModel, UserModel, VehicleFeatureModel, VehicleModel
from return_vehicle.domain.enums import (
    BLOCKING_BOOKING_STATUSES,
    BookingStatus,
    VehicleStatus,
)
from return_vehicle.domain.errors import DuplicateKeyError, StoreError
from return_vehicle.domain.search import VehicleSearchCriteria

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class _Repository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _flush(self, what: str) -> None:
        try:
            await self.session.flush()
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.exception("Store failure while saving %s", what)
            raise StoreError(f"Could not save {what}: {exc}") from exc

    async def _scalars(self, query: Select) -> list[Any]:
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as exc:
            logger.exception("Store failure on query")
            raise StoreError(f"Query failed: {exc}") from exc
        return list(result.scalars().all())

    async def _scalar(self, query: Select) -> Any:
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as exc:
            logger.exception("Store failure on query")
            raise StoreError(f"Query failed: {exc}") from exc
        return result.scalar()

    async def _get(self, model: type, entity_id: int) -> Any:
        try:
            return await self.session.get(model, entity_id)
        except SQLAlchemyError as exc:
            logger.exception("Store failure loading %s %s", model.__name__, entity_id)
            raise StoreError(f"Lookup failed: {exc}") from exc


class UserRepository(_Repository):
    async def create(self, user: UserModel) -> UserModel:
        self.session.add(user)
        try:
            await self._flush("user")
        except IntegrityError as exc:
            raise DuplicateKeyError("User with this email or UID already exists") from exc
        return user

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self._get(UserModel, user_id)

    async def get_by_external_uid(self, uid: str) -> Optional[UserModel]:
        rows = await self._scalars(
            select(UserModel).where(UserModel.external_uid == uid)
        )
        return rows[0] if rows else None

    async def find_all(self) -> list[UserModel]:
        return await self._scalars(
            select(UserModel).order_by(UserModel.created_at.desc(), UserModel.id.desc())
        )

    async def update(self, user: UserModel, patch: dict[str, Any]) -> UserModel:
        for key, value in patch.items():
            setattr(user, key, value)
        await self._flush("user")
        return user


class VehicleRepository(_Repository):
    async def create(self, vehicle: VehicleModel) -> VehicleModel:
        self.session.add(vehicle)
        try:
            await self._flush("vehicle")
        except IntegrityError as exc:
            raise DuplicateKeyError(
                "Vehicle with this plate number already exists"
            ) from exc
        return vehicle

    async def get_by_id(self, vehicle_id: int) -> Optional[VehicleModel]:
        return await self._get(VehicleModel, vehicle_id)

    async def get_by_plate(self, plate_number: str) -> Optional[VehicleModel]:
        rows = await self._scalars(
            select(VehicleModel).where(VehicleModel.plate_number == plate_number)
        )
        return rows[0] if rows else None

    async def get_by_driver(self, driver_id: int) -> list[VehicleModel]:
        return await self._scalars(
            select(VehicleModel)
            .where(VehicleModel.driver_id == driver_id)
            .order_by(VehicleModel.created_at.desc(), VehicleModel.id.desc())
        )

    async def update(
        self, vehicle: VehicleModel, patch: dict[str, Any]
    ) -> VehicleModel:
        features = patch.pop("features", None)
        for key, value in patch.items():
            setattr(vehicle, key, value)
        if features is not None:
            vehicle.set_features(features)
        try:
            await self._flush("vehicle")
        except IntegrityError as exc:
            raise DuplicateKeyError(
                "Vehicle with this plate number already exists"
            ) from exc
        return vehicle

    # ── Search ────────────────────────────────────────────────────

    @staticmethod
    def _listable():
        return (
            VehicleModel.is_active.is_(True),
            VehicleModel.is_available.is_(True),
            VehicleModel.status == VehicleStatus.APPROVED,
        )

    def _search_filters(self, criteria: VehicleSearchCriteria) -> list[Any]:
        filters: list[Any] = list(self._listable())
        if criteria.type:
            filters.append(VehicleModel.type == criteria.type)
        if criteria.city:
            filters.append(
                VehicleModel.city.ilike(f"%{_escape_like(criteria.city)}%", escape="\\")
            )
        if criteria.area:
            filters.append(
                VehicleModel.area.ilike(f"%{_escape_like(criteria.area)}%", escape="\\")
            )
        # min / max collapse into one range predicate
        if criteria.min_price is not None and criteria.max_price is not None:
            filters.append(
                VehicleModel.price_per_km.between(criteria.min_price, criteria.max_price)
            )
        elif criteria.min_price is not None:
            filters.append(VehicleModel.price_per_km >= criteria.min_price)
        elif criteria.max_price is not None:
            filters.append(VehicleModel.price_per_km <= criteria.max_price)
        if criteria.capacity:
            filters.append(VehicleModel.passenger_capacity >= criteria.capacity)
        if criteria.features:
            filters.append(
                VehicleModel.id.in_(
                    select(VehicleFeatureModel.vehicle_id).where(
                        VehicleFeatureModel.feature.in_(
                            [f.value for f in criteria.features]
                        )
                    )
                )
            )
        return filters

    async def search(
        self, criteria: VehicleSearchCriteria
    ) -> tuple[list[VehicleModel], int]:
        """One page of listable vehicles plus the total matching count."""
        filters = self._search_filters(criteria)
        column = getattr(VehicleModel, criteria.sort_column)
        order = column.asc() if criteria.sort_order == 1 else column.desc()

        items = await self._scalars(
            select(VehicleModel)
            .where(*filters)
            .order_by(order)
            .offset(criteria.offset)
            .limit(criteria.limit)
        )
        total = await self._scalar(
            select(func.count()).select_from(VehicleModel).where(*filters)
        )
        return items, total or 0

    async def distinct(self, column_name: str) -> list[Any]:
        """Distinct values of a column over active, approved vehicles."""
        column = getattr(VehicleModel, column_name)
        return await self._scalars(
            select(column)
            .distinct()
            .where(
                VehicleModel.is_active.is_(True),
                VehicleModel.status == VehicleStatus.APPROVED,
            )
        )

    async def distinct_features(self) -> list[str]:
        return await self._scalars(select(VehicleFeatureModel.feature).distinct())

    async def price_per_km_range(self) -> Optional[tuple[float, float]]:
        try:
            result = await self.session.execute(
                select(
                    func.min(VehicleModel.price_per_km),
                    func.max(VehicleModel.price_per_km),
                ).where(
                    VehicleModel.is_active.is_(True),
                    VehicleModel.status == VehicleStatus.APPROVED,
                )
            )
        except SQLAlchemyError as exc:
            logger.exception("Store failure on price range query")
            raise StoreError(f"Query failed: {exc}") from exc
        low, high = result.one()
        if low is None:
            return None
        return low, high


class BookingRepository(_Repository):
    async def create(self, booking: BookingModel) -> BookingModel:
        self.session.add(booking)
        try:
            await self._flush("booking")
        except IntegrityError as exc:
            logger.exception("Integrity failure while saving booking")
            raise StoreError(f"Could not save booking: {exc}") from exc
        return booking

    async def get_by_id(self, booking_id: int) -> Optional[BookingModel]:
        return await self._get(BookingModel, booking_id)

    async def update(
        self, booking: BookingModel, patch: dict[str, Any]
    ) -> BookingModel:
        """Apply *patch* to the row in a single UPDATE."""
        for key, value in patch.items():
            setattr(booking, key, value)
        try:
            await self._flush("booking")
        except IntegrityError as exc:
            raise StoreError(f"Could not update booking: {exc}") from exc
        return booking

    async def find_conflicts(
        self,
        vehicle_id: int,
        window_start: datetime,
        window_end: datetime,
        exclude_id: Optional[int] = None,
    ) -> list[BookingModel]:
        """Confirmed / started bookings of the vehicle inside the window (inclusive)."""
        query = select(BookingModel).where(
            BookingModel.vehicle_id == vehicle_id,
            BookingModel.scheduled_at >= window_start,
            BookingModel.scheduled_at <= window_end,
            BookingModel.status.in_(list(BLOCKING_BOOKING_STATUSES)),
        )
        if exclude_id is not None:
            query = query.where(BookingModel.id != exclude_id)
        return await self._scalars(query.order_by(BookingModel.id))

    def _listing(self, **equals: Any) -> Select:
        query = select(BookingModel)
        for column, value in equals.items():
            if value is not None:
                query = query.where(getattr(BookingModel, column) == value)
        return query

    async def find(
        self,
        *,
        user_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[BookingModel]:
        query = self._listing(user_id=user_id, driver_id=driver_id, status=status)
        query = query.order_by(
            BookingModel.created_at.desc(), BookingModel.id.desc()
        ).offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return await self._scalars(query)

    async def count(
        self,
        *,
        user_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
    ) -> int:
        query = self._listing(user_id=user_id, driver_id=driver_id, status=status)
        total = await self._scalar(
            select(func.count()).select_from(query.subquery())
        )
        return total or 0
