"""
Pydantic request / response schemas for the REST API.

JSON at the boundary is camelCase (``scheduledDateTime``); Python code
uses snake_case.  Date/time fields are emitted as ISO-8601 in UTC.

Booking-creation fields are all optional here so the service can report
``MISSING_FIELDS`` in its own precedence order; patch schemas forbid
unknown keys.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, Field
from pydantic.alias_generators import to_camel

from return_vehicle.domain.clock import ensure_utc
from return_vehicle.domain.entities import Location
from return_vehicle.domain.enums import (
    AuthProvider,
    LuggageSize,
    PaymentMethod,
    UserRole,
    VehicleFeature,
    VehicleStatus,
    VehicleType,
    Weekday,
)
from return_vehicle.domain.search import Pagination
from return_vehicle.infrastructure.models import BookingModel, VehicleModel
from return_vehicle.services.bookings import BookingRequest, PriceQuote
from return_vehicle.services.vehicles import AvailabilityReport, FilterOptions

UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
HourMinute = Annotated[str, Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")]


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class PatchModel(CamelModel):
    model_config = {"extra": "forbid"}


# ── Shared ────────────────────────────────────────────────────────────


class Coordinates(CamelModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationIn(CamelModel):
    address: str
    coordinates: Coordinates

    def to_domain(self) -> Location:
        return Location(
            address=self.address,
            latitude=self.coordinates.latitude,
            longitude=self.coordinates.longitude,
        )


# ── Booking requests ──────────────────────────────────────────────────


class BookingCreateRequest(CamelModel):
    vehicle_id: Optional[int] = None
    user_id: Optional[int] = None
    pickup_location: Optional[LocationIn] = None
    dropoff_location: Optional[LocationIn] = None
    distance: Optional[float] = Field(None, description="Trip distance in km")
    estimated_duration: Optional[float] = Field(None, description="Minutes")
    scheduled_date_time: Optional[datetime] = None
    special_requests: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    payment_method: Optional[PaymentMethod] = None

    def to_request(self) -> BookingRequest:
        return BookingRequest(
            vehicle_id=self.vehicle_id,
            user_id=self.user_id,
            pickup_location=self.pickup_location.to_domain()
            if self.pickup_location
            else None,
            dropoff_location=self.dropoff_location.to_domain()
            if self.dropoff_location
            else None,
            distance=self.distance,
            estimated_duration=self.estimated_duration,
            scheduled_date_time=self.scheduled_date_time,
            special_requests=self.special_requests,
            notes=self.notes,
            payment_method=self.payment_method,
        )


class PriceQuoteRequest(CamelModel):
    vehicle_id: Optional[int] = None
    distance: Optional[float] = None
    estimated_duration: Optional[float] = None


class StatusUpdateRequest(CamelModel):
    # validated by the state machine so bad values map to INVALID_STATUS
    status: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=500)
    updated_by: Optional[str] = None


class RatingRequest(CamelModel):
    by: str = Field(..., description="'user' rates the driver, 'driver' rates the user")
    rating: int
    review: Optional[str] = Field(None, max_length=1000)


# ── Vehicle requests ──────────────────────────────────────────────────


def _check_year(value: int) -> int:
    if not 1990 <= value <= date.today().year + 1:
        raise ValueError(f"year must be between 1990 and {date.today().year + 1}")
    return value


Year = Annotated[int, AfterValidator(_check_year)]


class CapacityIn(CamelModel):
    passengers: int = Field(..., ge=1)
    luggage: LuggageSize = LuggageSize.MEDIUM


class RateCardIn(CamelModel):
    base_price: float = Field(..., ge=0)
    price_per_km: float = Field(..., ge=0)
    price_per_hour: float = Field(..., ge=0)
    minimum_fare: float = Field(..., ge=0)
    currency: str = Field("BDT", min_length=3, max_length=3)


class VehicleLocationIn(CamelModel):
    city: str
    area: str
    coordinates: Coordinates
    address: Optional[str] = None


class HoursIn(CamelModel):
    start: HourMinute = "06:00"
    end: HourMinute = "22:00"


class AvailabilityIn(CamelModel):
    is_active: bool = True
    is_available: bool = True
    available_days: list[Weekday] = Field(default_factory=lambda: list(Weekday))
    available_hours: HoursIn = Field(default_factory=HoursIn)


class DocumentIn(CamelModel):
    number: Optional[str] = None
    expiry_date: Optional[date] = None
    image_url: Optional[str] = None


class InsuranceIn(DocumentIn):
    provider: Optional[str] = None


class DocumentsIn(CamelModel):
    registration: Optional[DocumentIn] = None
    insurance: Optional[InsuranceIn] = None
    fitness: Optional[DocumentIn] = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, by_alias=True, mode="json")


class ImageIn(CamelModel):
    url: str = Field(..., min_length=1)
    caption: Optional[str] = None
    is_primary: bool = False


def _images_json(images: list[ImageIn]) -> list[dict[str, Any]]:
    return [i.model_dump(exclude_none=True, by_alias=True) for i in images]


class VehicleCreateRequest(CamelModel):
    driver: int
    type: VehicleType
    brand: str = Field(..., min_length=1, max_length=60)
    model: str = Field(..., min_length=1, max_length=60)
    year: Year
    plate_number: str = Field(..., min_length=1, max_length=20)
    color: str = Field(..., min_length=1, max_length=30)
    capacity: CapacityIn
    features: list[VehicleFeature] = []
    pricing: RateCardIn
    location: VehicleLocationIn
    availability: AvailabilityIn = Field(default_factory=AvailabilityIn)
    description: Optional[str] = Field(None, max_length=500)
    documents: DocumentsIn = Field(default_factory=DocumentsIn)
    images: list[ImageIn] = []

    def to_columns(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "brand": self.brand.strip(),
            "model": self.model.strip(),
            "year": self.year,
            "plate_number": self.plate_number,
            "color": self.color.strip(),
            "passenger_capacity": self.capacity.passengers,
            "luggage_size": self.capacity.luggage,
            "features": [f.value for f in self.features],
            "base_price": self.pricing.base_price,
            "price_per_km": self.pricing.price_per_km,
            "price_per_hour": self.pricing.price_per_hour,
            "minimum_fare": self.pricing.minimum_fare,
            "currency": self.pricing.currency,
            "city": self.location.city,
            "area": self.location.area,
            "latitude": self.location.coordinates.latitude,
            "longitude": self.location.coordinates.longitude,
            "address": self.location.address,
            "is_active": self.availability.is_active,
            "is_available": self.availability.is_available,
            "available_days": [d.value for d in self.availability.available_days],
            "available_hours_start": self.availability.available_hours.start,
            "available_hours_end": self.availability.available_hours.end,
            "description": self.description,
            "documents": self.documents.to_json(),
            "images": _images_json(self.images),
        }


class CapacityPatch(PatchModel):
    passengers: Optional[int] = Field(None, ge=1)
    luggage: Optional[LuggageSize] = None


class RateCardPatch(PatchModel):
    base_price: Optional[float] = Field(None, ge=0)
    price_per_km: Optional[float] = Field(None, ge=0)
    price_per_hour: Optional[float] = Field(None, ge=0)
    minimum_fare: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class CoordinatesPatch(PatchModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationPatch(PatchModel):
    city: Optional[str] = None
    area: Optional[str] = None
    coordinates: Optional[CoordinatesPatch] = None
    address: Optional[str] = None


class HoursPatch(PatchModel):
    start: Optional[HourMinute] = None
    end: Optional[HourMinute] = None


class AvailabilityPatch(PatchModel):
    is_active: Optional[bool] = None
    is_available: Optional[bool] = None
    available_days: Optional[list[Weekday]] = None
    available_hours: Optional[HoursPatch] = None

    def to_patch(self) -> dict[str, Any]:
        patch: dict[str, Any] = {}
        if self.is_active is not None:
            patch["is_active"] = self.is_active
        if self.is_available is not None:
            patch["is_available"] = self.is_available
        if self.available_days is not None:
            patch["available_days"] = [d.value for d in self.available_days]
        if self.available_hours is not None:
            if self.available_hours.start is not None:
                patch["available_hours_start"] = self.available_hours.start
            if self.available_hours.end is not None:
                patch["available_hours_end"] = self.available_hours.end
        return patch


class VehicleUpdateRequest(PatchModel):
    brand: Optional[str] = Field(None, min_length=1, max_length=60)
    model: Optional[str] = Field(None, min_length=1, max_length=60)
    year: Optional[Year] = None
    plate_number: Optional[str] = Field(None, min_length=1, max_length=20)
    color: Optional[str] = Field(None, min_length=1, max_length=30)
    capacity: Optional[CapacityPatch] = None
    features: Optional[list[VehicleFeature]] = None
    pricing: Optional[RateCardPatch] = None
    location: Optional[LocationPatch] = None
    availability: Optional[AvailabilityPatch] = None
    description: Optional[str] = Field(None, max_length=500)
    documents: Optional[DocumentsIn] = None
    images: Optional[list[ImageIn]] = None

    def to_patch(self) -> dict[str, Any]:
        """Flatten the fields the caller actually sent into column values."""
        patch: dict[str, Any] = {}
        for name in ("brand", "model", "year", "plate_number", "color", "description"):
            value = getattr(self, name)
            if value is not None:
                patch[name] = value
        if self.features is not None:
            patch["features"] = [f.value for f in self.features]
        if self.capacity is not None:
            if self.capacity.passengers is not None:
                patch["passenger_capacity"] = self.capacity.passengers
            if self.capacity.luggage is not None:
                patch["luggage_size"] = self.capacity.luggage
        if self.pricing is not None:
            patch.update(self.pricing.model_dump(exclude_none=True))
        if self.location is not None:
            for name in ("city", "area", "address"):
                value = getattr(self.location, name)
                if value is not None:
                    patch[name] = value
            if self.location.coordinates is not None:
                patch["latitude"] = self.location.coordinates.latitude
                patch["longitude"] = self.location.coordinates.longitude
        if self.availability is not None:
            patch.update(self.availability.to_patch())
        if self.documents is not None:
            patch["documents"] = self.documents.to_json()
        if self.images is not None:
            patch["images"] = _images_json(self.images)
        return patch


class VehicleStatusRequest(CamelModel):
    status: VehicleStatus


# ── User requests ─────────────────────────────────────────────────────


class UserSyncRequest(CamelModel):
    external_uid: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[UserRole] = None
    auth_provider: Optional[AuthProvider] = None


class RoleRequest(CamelModel):
    role: UserRole


class DriverDetailsIn(PatchModel):
    license_number: Optional[str] = None
    license_expiry: Optional[date] = None
    experience: Optional[int] = Field(None, ge=0, description="Years")


class ProfileRequest(PatchModel):
    phone: Optional[str] = None
    driver_details: Optional[DriverDetailsIn] = None


# ── Responses ─────────────────────────────────────────────────────────


class UserSummary(CamelModel):
    id: int
    name: str
    email: str
    phone: str = ""

    model_config = {"from_attributes": True}


class UserResponse(UserSummary):
    external_uid: str
    role: UserRole
    is_verified: bool
    is_active: bool
    profile_complete: bool
    auth_provider: AuthProvider
    driver_details: Optional[dict[str, Any]] = None
    created_at: Optional[UtcDatetime] = None


class UserListResponse(CamelModel):
    count: int
    users: list[UserResponse]


class RateCardOut(CamelModel):
    base_price: float
    price_per_km: float
    price_per_hour: float
    minimum_fare: float
    currency: str


class VehicleSummary(CamelModel):
    id: int
    brand: str
    model: str
    plate_number: str
    type: VehicleType
    pricing: RateCardOut

    @classmethod
    def from_model(cls, v: VehicleModel) -> "VehicleSummary":
        return cls(
            id=v.id,
            brand=v.brand,
            model=v.model,
            plate_number=v.plate_number,
            type=v.type,
            pricing=RateCardOut(**v.rate_card.__dict__),
        )


class VehicleResponse(CamelModel):
    id: int
    driver: UserSummary
    type: VehicleType
    brand: str
    model: str
    year: int
    plate_number: str
    color: str
    capacity: CapacityIn
    features: list[str]
    pricing: RateCardOut
    location: VehicleLocationIn
    availability: AvailabilityIn
    status: VehicleStatus
    approved_at: Optional[UtcDatetime] = None
    stats: dict[str, float]
    rating: dict[str, float]
    description: Optional[str] = None
    documents: dict[str, Any] = {}
    documents_complete: bool = False
    images: list[dict[str, Any]] = []
    primary_image: Optional[str] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None

    @classmethod
    def from_model(cls, v: VehicleModel) -> "VehicleResponse":
        return cls(
            id=v.id,
            driver=UserSummary.model_validate(v.driver),
            type=v.type,
            brand=v.brand,
            model=v.model,
            year=v.year,
            plate_number=v.plate_number,
            color=v.color,
            capacity=CapacityIn(passengers=v.passenger_capacity, luggage=v.luggage_size),
            features=v.features,
            pricing=RateCardOut(**v.rate_card.__dict__),
            location=VehicleLocationIn(
                city=v.city,
                area=v.area,
                coordinates=Coordinates(latitude=v.latitude, longitude=v.longitude),
                address=v.address,
            ),
            availability=AvailabilityIn(
                is_active=v.is_active,
                is_available=v.is_available,
                available_days=v.available_days,
                available_hours=HoursIn(
                    start=v.available_hours_start, end=v.available_hours_end
                ),
            ),
            status=v.status,
            approved_at=v.approved_at,
            stats={
                "totalTrips": v.total_trips,
                "totalEarnings": v.total_earnings,
                "totalDistance": v.total_distance,
            },
            rating={"average": v.rating_average, "count": v.rating_count},
            description=v.description,
            documents=v.documents or {},
            documents_complete=v.documents_complete,
            images=v.images or [],
            primary_image=v.primary_image,
            created_at=v.created_at,
            updated_at=v.updated_at,
        )


class PaginationOut(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_domain(cls, p: Pagination) -> "PaginationOut":
        return cls(**p.__dict__)


class VehicleListResponse(CamelModel):
    vehicles: list[VehicleResponse]
    pagination: PaginationOut


class DriverVehiclesResponse(CamelModel):
    count: int
    vehicles: list[VehicleResponse]


class PriceRange(CamelModel):
    min_price: float
    max_price: float


class FilterOptionsResponse(CamelModel):
    vehicle_types: list[str]
    cities: list[str]
    features: list[str]
    price_range: PriceRange

    @classmethod
    def from_domain(cls, f: FilterOptions) -> "FilterOptionsResponse":
        return cls(
            vehicle_types=f.vehicle_types,
            cities=f.cities,
            features=f.features,
            price_range=PriceRange(min_price=f.min_price, max_price=f.max_price),
        )


class AvailabilityResponse(CamelModel):
    vehicle_id: int
    at: UtcDatetime
    bookable: bool
    within_schedule: bool
    conflicting_booking_ids: list[int]

    @classmethod
    def from_domain(cls, r: AvailabilityReport) -> "AvailabilityResponse":
        return cls(**r.__dict__)


class LocationOut(CamelModel):
    address: str
    coordinates: Coordinates


class TripDetailsOut(CamelModel):
    pickup_location: LocationOut
    dropoff_location: LocationOut
    distance: float
    estimated_duration: float


class BookingPricingOut(CamelModel):
    base_price: float
    distance_price: float
    time_price: float
    total_price: float
    currency: str


class TripProgressOut(CamelModel):
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None
    actual_distance: Optional[float] = None
    actual_duration: Optional[float] = None
    route: list[dict[str, Any]] = []


class PaymentOut(CamelModel):
    method: PaymentMethod
    status: str
    transaction_id: Optional[str] = None
    paid_at: Optional[UtcDatetime] = None


class RatingsOut(CamelModel):
    user_rating: Optional[dict[str, Any]] = None
    driver_rating: Optional[dict[str, Any]] = None


class BookingResponse(CamelModel):
    id: int
    user: UserSummary
    driver: UserSummary
    vehicle: VehicleSummary
    trip_details: TripDetailsOut
    scheduled_date_time: UtcDatetime
    pricing: BookingPricingOut
    status: str
    trip_progress: TripProgressOut
    payment: PaymentOut
    special_requests: Optional[str] = None
    notes: Optional[str] = None
    rating: RatingsOut
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    booked_at: Optional[UtcDatetime] = None
    confirmed_at: Optional[UtcDatetime] = None
    rejected_at: Optional[UtcDatetime] = None
    cancelled_at: Optional[UtcDatetime] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None
    total_trip_time: Optional[float] = None

    @classmethod
    def from_model(cls, b: BookingModel) -> "BookingResponse":
        return cls(
            id=b.id,
            user=UserSummary.model_validate(b.user),
            driver=UserSummary.model_validate(b.driver),
            vehicle=VehicleSummary.from_model(b.vehicle),
            trip_details=TripDetailsOut(
                pickup_location=LocationOut(
                    address=b.pickup_address,
                    coordinates=Coordinates(latitude=b.pickup_lat, longitude=b.pickup_lng),
                ),
                dropoff_location=LocationOut(
                    address=b.dropoff_address,
                    coordinates=Coordinates(
                        latitude=b.dropoff_lat, longitude=b.dropoff_lng
                    ),
                ),
                distance=b.distance_km,
                estimated_duration=b.estimated_duration_min,
            ),
            scheduled_date_time=b.scheduled_at,
            pricing=BookingPricingOut(
                base_price=b.base_price,
                distance_price=b.distance_price,
                time_price=b.time_price,
                total_price=b.total_price,
                currency=b.currency,
            ),
            status=b.status.value,
            trip_progress=TripProgressOut(
                start_time=b.trip_start_time,
                end_time=b.trip_end_time,
                actual_distance=b.actual_distance_km,
                actual_duration=b.actual_duration_min,
                route=b.route or [],
            ),
            payment=PaymentOut(
                method=b.payment_method,
                status=b.payment_status.value,
                transaction_id=b.transaction_id,
                paid_at=b.paid_at,
            ),
            special_requests=b.special_requests,
            notes=b.notes,
            rating=RatingsOut(user_rating=b.user_rating, driver_rating=b.driver_rating),
            cancellation_reason=b.cancellation_reason,
            cancelled_by=b.cancelled_by.value if b.cancelled_by else None,
            booked_at=b.booked_at,
            confirmed_at=b.confirmed_at,
            rejected_at=b.rejected_at,
            cancelled_at=b.cancelled_at,
            created_at=b.created_at,
            updated_at=b.updated_at,
            total_trip_time=b.total_trip_minutes,
        )


class BookingListResponse(CamelModel):
    count: int
    bookings: list[BookingResponse]
    pagination: Optional[PaginationOut] = None


class PriceQuoteResponse(CamelModel):
    vehicle_id: int
    base_price: float
    distance_price: float
    time_price: float
    total_price: float
    currency: str
    minimum_fare: float
    breakdown: dict[str, str]

    @classmethod
    def from_domain(cls, q: PriceQuote) -> "PriceQuoteResponse":
        return cls(
            vehicle_id=q.vehicle_id,
            **q.pricing.as_dict(),
            currency=q.rate_card.currency,
            minimum_fare=q.rate_card.minimum_fare,
            breakdown=q.breakdown,
        )


class HealthResponse(BaseModel):
    status: str = "ok"
    checks: dict[str, str] = {}


class ErrorResponse(BaseModel):
    detail: str
    code: str
    details: dict[str, Any] = {}
