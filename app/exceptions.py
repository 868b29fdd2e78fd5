from typing import Iterable, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class BookingError(APIException):
    """Base for every rejection the booking core reports to callers."""

    http_status = 400
    code = "booking_error"

    def __init__(self, detail: str):
        super().__init__(status_code=self.http_status, detail=detail)

    @property
    def message(self) -> str:
        return self.detail


class ValidationFailedError(BookingError):
    code = "validation"


class BusinessRuleError(BookingError):
    code = "business_rule"


class SlotDoctorMismatchError(BusinessRuleError):
    code = "slot_doctor_mismatch"

    def __init__(self, detail: str = "Time slot does not belong to the specified doctor"):
        super().__init__(detail)


class DuplicateConstraintError(BusinessRuleError):
    code = "duplicate_constraint"

    def __init__(self, detail: str = "A duplicate record already exists. The operation could not be completed."):
        super().__init__(detail)


class InvalidTransitionError(BookingError):
    code = "invalid_transition"

    def __init__(self, current, requested, allowed: Iterable):
        self.current = current
        self.requested = requested
        self.allowed = frozenset(allowed)
        names = ", ".join(sorted(str(s) for s in self.allowed)) or "none (terminal state)"
        super().__init__(
            f"Invalid status transition from {current} to {requested}. "
            f"Allowed transitions from {current}: {names}"
        )


class SlotUnavailableError(BookingError):
    http_status = 409
    code = "slot_unavailable"

    def __init__(self, detail: str = "Time slot not available or already booked"):
        super().__init__(detail)


class ConcurrencyConflictError(BookingError):
    http_status = 409
    code = "concurrency_conflict"

    def __init__(self, detail: str = "The resource was modified by another user. Please refresh and try again."):
        super().__init__(detail)


class UnauthorizedError(BookingError):
    http_status = 403
    code = "unauthorized"


class NotFoundError(BookingError):
    http_status = 404
    code = "not_found"


class StorageUnavailableError(BookingError):
    http_status = 503
    code = "storage_unavailable"

    def __init__(self, detail: str = "The booking store is busy or unavailable. Please try again."):
        super().__init__(detail)


def create_error_response(error_message: str, status_code: int = 400, code: Optional[str] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "data": None,
        "error": error_message
    }
    if code:
        body["code"] = code
    return body


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )

async def booking_exception_handler(request: Request, exc: BookingError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code, code=exc.code)
    )
