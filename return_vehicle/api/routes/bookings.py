"""
Booking endpoints
=================

POST /api/v1/bookings                        -- create a booking (201)
GET  /api/v1/bookings                        -- list bookings (admin, paginated)
POST /api/v1/bookings/calculate-price        -- price quote for a vehicle
GET  /api/v1/bookings/user/{user_id}         -- a passenger's bookings
GET  /api/v1/bookings/driver/{driver_id}     -- a driver's bookings
GET  /api/v1/bookings/{booking_id}           -- booking details
PUT  /api/v1/bookings/{booking_id}/status    -- drive the status state machine
POST /api/v1/bookings/{booking_id}/rating    -- rate a completed trip
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from return_vehicle.api.dependencies import get_booking_service
from return_vehicle.api.middleware import limiter
from return_vehicle.api.schemas import (
    BookingCreateRequest,
    BookingListResponse,
    BookingResponse,
    ErrorResponse,
    PaginationOut,
    PriceQuoteRequest,
    PriceQuoteResponse,
    RatingRequest,
    StatusUpdateRequest,
)
from return_vehicle.services.bookings import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    status_code=201,
    response_model=BookingResponse,
    summary="Create a booking",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "Slot already taken"},
    },
)
@limiter.limit("100/minute")
async def create_booking(
    request: Request,
    body: BookingCreateRequest,
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.create_booking(body.to_request())
    return BookingResponse.from_model(booking)


@router.get(
    "",
    response_model=BookingListResponse,
    summary="List bookings with optional status filter",
)
@limiter.limit("100/minute")
async def list_bookings(
    request: Request,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: BookingService = Depends(get_booking_service),
):
    bookings, pagination = await service.list_all(status, page, limit)
    return BookingListResponse(
        count=len(bookings),
        bookings=[BookingResponse.from_model(b) for b in bookings],
        pagination=PaginationOut.from_domain(pagination),
    )


@router.post(
    "/calculate-price",
    response_model=PriceQuoteResponse,
    summary="Quote a trip price without booking",
)
@limiter.limit("100/minute")
async def calculate_price(
    request: Request,
    body: PriceQuoteRequest,
    service: BookingService = Depends(get_booking_service),
):
    quote = await service.quote_price(
        body.vehicle_id, body.distance, body.estimated_duration
    )
    return PriceQuoteResponse.from_domain(quote)


@router.get(
    "/user/{user_id}",
    response_model=BookingListResponse,
    summary="Bookings made by a user",
)
@limiter.limit("100/minute")
async def user_bookings(
    request: Request,
    user_id: int,
    status: Optional[str] = None,
    service: BookingService = Depends(get_booking_service),
):
    bookings = await service.list_for_user(user_id, status)
    return BookingListResponse(
        count=len(bookings),
        bookings=[BookingResponse.from_model(b) for b in bookings],
    )


@router.get(
    "/driver/{driver_id}",
    response_model=BookingListResponse,
    summary="Bookings assigned to a driver",
)
@limiter.limit("100/minute")
async def driver_bookings(
    request: Request,
    driver_id: int,
    status: Optional[str] = None,
    service: BookingService = Depends(get_booking_service),
):
    bookings = await service.list_for_driver(driver_id, status)
    return BookingListResponse(
        count=len(bookings),
        bookings=[BookingResponse.from_model(b) for b in bookings],
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get booking details",
)
@limiter.limit("100/minute")
async def get_booking(
    request: Request,
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
):
    return BookingResponse.from_model(await service.get_booking(booking_id))


@router.put(
    "/{booking_id}/status",
    response_model=BookingResponse,
    summary="Change booking status",
    description=(
        "Sets the status and its side effects: confirmedAt, rejectedAt, "
        "cancelledAt (+ reason / cancelledBy), trip start / end time, and "
        "payment paid on completion."
    ),
)
@limiter.limit("100/minute")
async def update_status(
    request: Request,
    booking_id: int,
    body: StatusUpdateRequest,
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.update_status(
        booking_id, body.status, reason=body.reason, updated_by=body.updated_by
    )
    return BookingResponse.from_model(booking)


@router.post(
    "/{booking_id}/rating",
    response_model=BookingResponse,
    summary="Rate a completed booking",
)
@limiter.limit("100/minute")
async def rate_booking(
    request: Request,
    booking_id: int,
    body: RatingRequest,
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.rate_booking(
        booking_id, body.by, body.rating, body.review
    )
    return BookingResponse.from_model(booking)
