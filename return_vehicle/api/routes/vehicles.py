"""
Vehicle endpoints
=================

GET   /api/v1/vehicles                          -- search listable vehicles
POST  /api/v1/vehicles                          -- list a new vehicle (driver)
GET   /api/v1/vehicles/meta/filters             -- filter options for search UI
GET   /api/v1/vehicles/driver/{driver_id}       -- a driver's vehicles
GET   /api/v1/vehicles/{vehicle_id}             -- vehicle details
PATCH /api/v1/vehicles/{vehicle_id}             -- partial update
PATCH /api/v1/vehicles/{vehicle_id}/availability -- toggle availability
PATCH /api/v1/vehicles/{vehicle_id}/status      -- approval workflow
GET   /api/v1/vehicles/{vehicle_id}/availability -- bookable at an instant?
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from return_vehicle.api.dependencies import get_vehicle_service
from return_vehicle.api.middleware import limiter
from return_vehicle.api.schemas import (
    AvailabilityPatch,
    AvailabilityResponse,
    DriverVehiclesResponse,
    ErrorResponse,
    FilterOptionsResponse,
    PaginationOut,
    VehicleCreateRequest,
    VehicleListResponse,
    VehicleResponse,
    VehicleStatusRequest,
    VehicleUpdateRequest,
)
from return_vehicle.domain.enums import VehicleFeature, VehicleType
from return_vehicle.domain.errors import DomainValidationError
from return_vehicle.domain.search import VehicleSearchCriteria
from return_vehicle.services.vehicles import VehicleService

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


def _parse_features(raw: Optional[str]) -> tuple[VehicleFeature, ...]:
    tags = [f.strip() for f in (raw or "").split(",") if f.strip()]
    try:
        return tuple(VehicleFeature(t) for t in tags)
    except ValueError as exc:
        raise DomainValidationError(str(exc), path="features") from exc


@router.get(
    "",
    response_model=VehicleListResponse,
    summary="Search vehicles",
    description=(
        "Only active, available and approved vehicles are returned. "
        "``features`` is comma-separated and matches any of the tags."
    ),
)
@limiter.limit("100/minute")
async def search_vehicles(
    request: Request,
    type: Optional[VehicleType] = None,
    city: Optional[str] = None,
    area: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    capacity: Optional[int] = Query(None, ge=1),
    features: Optional[str] = None,
    sort_by: str = Query("rating.average", alias="sortBy"),
    sort_order: int = Query(-1, alias="sortOrder"),
    page: int = 1,
    limit: int = 10,
    service: VehicleService = Depends(get_vehicle_service),
):
    criteria = VehicleSearchCriteria(
        type=type,
        city=city,
        area=area,
        min_price=min_price,
        max_price=max_price,
        capacity=capacity,
        features=_parse_features(features),
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    vehicles, pagination = await service.search(criteria)
    return VehicleListResponse(
        vehicles=[VehicleResponse.from_model(v) for v in vehicles],
        pagination=PaginationOut.from_domain(pagination),
    )


@router.post(
    "",
    status_code=201,
    response_model=VehicleResponse,
    summary="List a new vehicle",
    responses={409: {"model": ErrorResponse, "description": "Duplicate plate"}},
)
@limiter.limit("100/minute")
async def create_vehicle(
    request: Request,
    body: VehicleCreateRequest,
    service: VehicleService = Depends(get_vehicle_service),
):
    vehicle = await service.create_vehicle(body.driver, body.to_columns())
    return VehicleResponse.from_model(vehicle)


@router.get(
    "/meta/filters",
    response_model=FilterOptionsResponse,
    summary="Filter options for the search screen",
)
@limiter.limit("100/minute")
async def filter_options(
    request: Request,
    service: VehicleService = Depends(get_vehicle_service),
):
    return FilterOptionsResponse.from_domain(await service.filter_options())


@router.get(
    "/driver/{driver_id}",
    response_model=DriverVehiclesResponse,
    summary="Vehicles owned by a driver",
)
@limiter.limit("100/minute")
async def driver_vehicles(
    request: Request,
    driver_id: int,
    service: VehicleService = Depends(get_vehicle_service),
):
    vehicles = await service.list_by_driver(driver_id)
    return DriverVehiclesResponse(
        count=len(vehicles),
        vehicles=[VehicleResponse.from_model(v) for v in vehicles],
    )


@router.get(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Get vehicle details",
)
@limiter.limit("100/minute")
async def get_vehicle(
    request: Request,
    vehicle_id: int,
    service: VehicleService = Depends(get_vehicle_service),
):
    return VehicleResponse.from_model(await service.get_vehicle(vehicle_id))


@router.patch(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    summary="Partially update a vehicle",
)
@limiter.limit("100/minute")
async def update_vehicle(
    request: Request,
    vehicle_id: int,
    body: VehicleUpdateRequest,
    service: VehicleService = Depends(get_vehicle_service),
):
    vehicle = await service.update_vehicle(vehicle_id, body.to_patch())
    return VehicleResponse.from_model(vehicle)


@router.patch(
    "/{vehicle_id}/availability",
    response_model=VehicleResponse,
    summary="Toggle availability flags or schedule",
)
@limiter.limit("100/minute")
async def update_availability(
    request: Request,
    vehicle_id: int,
    body: AvailabilityPatch,
    service: VehicleService = Depends(get_vehicle_service),
):
    vehicle = await service.update_vehicle(vehicle_id, body.to_patch())
    return VehicleResponse.from_model(vehicle)


@router.patch(
    "/{vehicle_id}/status",
    response_model=VehicleResponse,
    summary="Approve, reject or suspend a vehicle",
)
@limiter.limit("100/minute")
async def set_vehicle_status(
    request: Request,
    vehicle_id: int,
    body: VehicleStatusRequest,
    service: VehicleService = Depends(get_vehicle_service),
):
    vehicle = await service.set_status(vehicle_id, body.status)
    return VehicleResponse.from_model(vehicle)


@router.get(
    "/{vehicle_id}/availability",
    response_model=AvailabilityResponse,
    summary="Check whether a vehicle can be booked at an instant",
)
@limiter.limit("100/minute")
async def check_availability(
    request: Request,
    vehicle_id: int,
    at: datetime,
    service: VehicleService = Depends(get_vehicle_service),
):
    report = await service.check_availability(vehicle_id, at)
    return AvailabilityResponse.from_domain(report)
