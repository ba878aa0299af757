"""Vehicle search criteria and pagination metadata."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from .enums import VehicleFeature, VehicleType
from .errors import DomainValidationError

# public sort key -> VehicleModel attribute name
SORT_FIELDS: dict[str, str] = {
    "rating.average": "rating_average",
    "pricing.pricePerKm": "price_per_km",
    "pricing.basePrice": "base_price",
    "capacity.passengers": "passenger_capacity",
    "year": "year",
    "createdAt": "created_at",
}

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class VehicleSearchCriteria:
    type: Optional[VehicleType] = None
    city: Optional[str] = None
    area: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    capacity: Optional[int] = None
    features: tuple[VehicleFeature, ...] = field(default_factory=tuple)
    sort_by: str = "rating.average"
    sort_order: int = -1
    page: int = 1
    limit: int = 10

    def __post_init__(self):
        if self.sort_by not in SORT_FIELDS:
            raise DomainValidationError(
                f"Unsupported sort field: {self.sort_by}", path="sortBy"
            )
        if self.sort_order not in (1, -1):
            raise DomainValidationError("sortOrder must be 1 or -1", path="sortOrder")
        if self.page < 1:
            raise DomainValidationError("page must be >= 1", path="page")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise DomainValidationError(
                f"limit must be between 1 and {MAX_PAGE_SIZE}", path="limit"
            )
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise DomainValidationError(
                "minPrice cannot exceed maxPrice", path="minPrice"
            )

    @property
    def sort_column(self) -> str:
        return SORT_FIELDS[self.sort_by]

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "Pagination":
        total_pages = math.ceil(total_count / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            has_next=page < total_pages,
            has_prev=page > 1,
        )
