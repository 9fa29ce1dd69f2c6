import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for every rejection the booking engine can produce."""

    code = "booking_error"
    status_code = 400
    default_message = "Booking rejected."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CompanyUnavailable(BookingError):
    code = "company_unavailable"
    status_code = 409
    default_message = "Company is not accepting bookings."


class BookingUnavailable(BookingError):
    """Booking is switched off for the company; distinct from every slot being full."""

    code = "booking_unavailable"
    status_code = 409
    default_message = "Booking is currently closed for this company."


class InvalidSlot(BookingError):
    code = "invalid_slot"
    status_code = 422
    default_message = "Time slot is not offered by this company."


class SlotFull(BookingError):
    code = "slot_full"
    status_code = 409
    default_message = "Time slot is fully booked."


class TimeConflict(BookingError):
    code = "time_conflict"
    status_code = 409
    default_message = "Student already has an appointment at this time."


class DuplicateCompanyBooking(BookingError):
    code = "duplicate_company_booking"
    status_code = 409
    default_message = "Student already has an appointment with this company."


class ValidationError(BookingError):
    code = "validation_error"
    status_code = 422
    default_message = "Invalid student information."


class NotFound(BookingError):
    code = "not_found"
    status_code = 404
    default_message = "Not found."


class InvalidStatusTransition(BookingError):
    code = "invalid_status_transition"
    status_code = 409
    default_message = "Appointment status cannot change this way."


def register_exception_handlers(app):
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        logger.info(f"[Rejected] {exc.code}: {exc.message} | Path={request.url.path}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.code, "detail": exc.message},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"[HTTPException] {exc.detail} | Path={request.url.path}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "http_error", "detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"[ValidationError] Path={request.url.path} | {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content={"error": ValidationError.code, "detail": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"[UnhandledError] {exc} | Path={request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"error": "internal_error", "detail": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # pydantic may put the raw exception object in ctx, which JSON can't carry
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
