"""
FastAPI application factory.

* Registers routes for bookings, vehicles, users and admin.
* Disposes the database engine via lifespan events.
* Maps domain errors onto JSON error responses.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from return_vehicle.api.errors import register_error_handlers
from return_vehicle.api.middleware import limiter
from return_vehicle.api.routes import admin, bookings, users, vehicles
from return_vehicle.infrastructure.database import dispose_engine

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release pooled database connections on shutdown."""
    logger.info("ReturnVehicle API starting")
    yield
    await dispose_engine()
    logger.info("ReturnVehicle API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="ReturnVehicle Booking API",
        description=(
            "Marketplace backend for booking return-trip vehicles.  "
            "Prices trips from each vehicle's rate card, prevents double "
            "booking of a vehicle around a scheduled time, and tracks the "
            "booking lifecycle from request to completion."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_error_handlers(app)

    # Routers
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(vehicles.router, prefix="/api/v1")
    app.include_router(users.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
