"""Maps ``DomainError`` codes and request validation failures onto HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from return_vehicle.domain.errors import DomainError, ErrorCode

logger = logging.getLogger(__name__)

HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.MISSING_FIELDS: 400,
    ErrorCode.VEHICLE_UNAVAILABLE: 400,
    ErrorCode.INVALID_STATUS: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.SLOT_TAKEN: 409,
    ErrorCode.BOOKING_IN_PROGRESS: 409,
    ErrorCode.DUPLICATE_KEY: 409,
    ErrorCode.INVALID_TRANSITION: 409,
    ErrorCode.INTERNAL: 500,
}


def _envelope(message: str, code: ErrorCode, details: dict) -> dict:
    return {"detail": message, "code": code.value, "details": details}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = HTTP_STATUS.get(exc.code, 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content=_envelope(exc.message, exc.code, exc.details),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # loc starts with the request part ("body", "query", "path")
    errors = [
        {
            "path": ".".join(str(part) for part in err["loc"][1:]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        "%s %s rejected: %d invalid field(s)",
        request.method,
        request.url.path,
        len(errors),
    )
    details = {"path": errors[0]["path"] if errors else None, "errors": errors}
    return JSONResponse(
        status_code=HTTP_STATUS[ErrorCode.VALIDATION_ERROR],
        content=_envelope("Request validation failed", ErrorCode.VALIDATION_ERROR, details),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
