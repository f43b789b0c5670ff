"""
Booking error taxonomy

Raised by the scheduling and clinical-record services and translated to HTTP
responses by the handler registered in main.py. None of these are retried by
the service layer; retrying (e.g. picking another slot) is up to the caller.
"""


class BookingError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code = 400
    code = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class InvalidInput(BookingError):
    """Malformed or missing fields, end not after start"""

    status_code = 400
    code = "invalid_input"


class Mismatch(BookingError):
    """Referenced records exist but do not belong together"""

    status_code = 400
    code = "mismatch"


class Unauthorized(BookingError):
    status_code = 403
    code = "unauthorized"


class NotFound(BookingError):
    status_code = 404
    code = "not_found"


class SlotUnavailable(BookingError):
    """The requested interval collides with a live reservation"""

    status_code = 409
    code = "slot_unavailable"


class InvalidTransition(BookingError):
    status_code = 409
    code = "invalid_transition"


class Conflict(BookingError):
    """A uniqueness rule outside scheduling was violated"""

    status_code = 409
    code = "conflict"


class Inactive(BookingError):
    """Specialist, service or business exists but is disabled"""

    status_code = 422
    code = "inactive"
