"""Map domain errors to HTTP responses.

Transition errors are expected under normal contention, so they are
logged at INFO and answered with a user-facing message that never names
internal statuses.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ondemand.domain.errors import (
    BookingError,
    BookingNotCompleted,
    DuplicateRating,
    InvalidScore,
    InvalidTransition,
    MissingDropoff,
    MissingProvider,
    NotFound,
    StaleTransition,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[BookingError], int] = {
    NotFound: 404,
    InvalidTransition: 409,
    StaleTransition: 409,
    DuplicateRating: 409,
    InvalidScore: 422,
    BookingNotCompleted: 422,
    MissingDropoff: 422,
    MissingProvider: 422,
}


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)), 400
    )
    detail = exc.user_detail if isinstance(exc, NotFound) else exc.user_message
    logger.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "code": exc.code},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
