"""Booking domain errors and their HTTP mapping."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BookingError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BOOKING_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ShowNotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "SHOW_NOT_FOUND"


class ShowAlreadyStarted(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = "SHOW_ALREADY_STARTED"


class InvalidSeatSelection(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_SEAT_SELECTION"


class SeatUnavailable(BookingError):
    """One or more seats are no longer available; re-fetch the seat map and retry."""
    status_code = status.HTTP_409_CONFLICT
    code = "SEAT_UNAVAILABLE"

    def __init__(self, message: str, seat_numbers: list[str] | None = None):
        super().__init__(message)
        self.seat_numbers = list(seat_numbers or [])


class BookingExpired(BookingError):
    status_code = status.HTTP_410_GONE
    code = "BOOKING_EXPIRED"


class BookingNotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "BOOKING_NOT_FOUND"


class BookingAlreadyPaid(BookingError):
    """A second payment arrived for a booking some other payment already confirmed."""
    status_code = status.HTTP_409_CONFLICT
    code = "BOOKING_ALREADY_PAID"


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.warning("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    content = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, SeatUnavailable) and exc.seat_numbers:
        content["seat_numbers"] = exc.seat_numbers
    return JSONResponse(status_code=exc.status_code, content=content)


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


EXCEPTION_HANDLERS = {
    BookingError: booking_error_handler,
    Exception: general_500_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
