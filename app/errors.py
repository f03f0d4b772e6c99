"""
Booking engine failures.

Every error raised by the booking services derives from ``BookingError``.
Each class carries the HTTP status the API layer answers with and a short
machine-readable ``code``; ``details()`` holds the structured payload that
goes out next to the human-readable message.
"""
from datetime import date


class BookingError(Exception):
    status_code: int = 400
    code: str = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> dict:
        return {}


class ValidationError(BookingError):
    status_code = 400
    code = "validation_error"


class NotFoundError(BookingError):
    status_code = 404
    code = "not_found"


class InsufficientAvailabilityError(BookingError):
    status_code = 409
    code = "insufficient_availability"

    def __init__(self, available: int, requested: int):
        super().__init__(
            f"Insufficient rooms available. Only {available} room(s) available, {requested} requested."
        )
        self.available = available
        self.requested = requested

    def details(self) -> dict:
        return {"available": self.available, "requested": self.requested}


class BlackoutViolationError(BookingError):
    status_code = 400
    code = "blackout_violation"

    def __init__(self, dates: list[date]):
        super().__init__(
            "Cannot book during blackout dates: " + ", ".join(d.isoformat() for d in dates)
        )
        self.dates = list(dates)

    def details(self) -> dict:
        return {"dates": [d.isoformat() for d in self.dates]}


class MinimumStayViolationError(BookingError):
    status_code = 400
    code = "minimum_stay_violation"

    def __init__(self, required: int, actual: int):
        super().__init__(
            f"Minimum stay of {required} nights required. You selected {actual} nights."
        )
        self.required = required
        self.actual = actual

    def details(self) -> dict:
        return {"required": self.required, "actual": self.actual}


class InvalidStateError(BookingError):
    status_code = 409
    code = "invalid_state"

    def __init__(self, message: str, status: str | None = None):
        super().__init__(message)
        self.status = status

    def details(self) -> dict:
        return {"status": self.status} if self.status else {}
