"""
Domain errors raised by the services.

Each error carries a stable ``code`` and the HTTP status the API maps it to,
plus optional structured fields rendered next to the message.
"""
from typing import Any, Dict, Iterable, List


class BookingServiceError(Exception):
    """Base exception for booking service errors"""
    code = "booking_error"
    status_code = 400

    def __init__(self, message: str, **fields: Any):
        super().__init__(message)
        self.message = message
        self.fields = fields

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.fields}


class NotFoundError(BookingServiceError):
    code = "not_found"
    status_code = 404


class BusNotFoundError(NotFoundError):
    """Raised when bus doesn't exist"""

    def __init__(self, bus_id: int):
        super().__init__(f"Bus {bus_id} not found", bus_id=bus_id)


class BookingNotFoundError(NotFoundError):
    """Raised when booking doesn't exist"""

    def __init__(self, booking_id: int):
        super().__init__(f"Booking {booking_id} not found", booking_id=booking_id)


class InvalidRequestError(BookingServiceError):
    """Empty or duplicated seat selection"""
    code = "invalid_request"


class InvalidSeatError(BookingServiceError):
    """Seat numbers outside 1..total_seats"""
    code = "invalid_seat"

    def __init__(self, invalid_seats: Iterable[int]):
        seats = sorted(set(invalid_seats))
        super().__init__(
            f"Invalid seat numbers: {', '.join(map(str, seats))}",
            invalid_seats=seats,
        )


class PastDateError(BookingServiceError):
    code = "past_date"


class InsufficientCapacityError(BookingServiceError):
    code = "insufficient_capacity"
    status_code = 409

    def __init__(self, available_seats: int):
        super().__init__(
            f"Only {available_seats} seats available",
            available_seats=available_seats,
        )


class SeatConflictError(BookingServiceError):
    """Raised when requested seats are held by another confirmed booking"""
    code = "seat_conflict"
    status_code = 409

    def __init__(self, conflicting_seats: Iterable[int]):
        seats: List[int] = sorted(set(conflicting_seats))
        if seats:
            message = f"Seats already booked: {', '.join(map(str, seats))}"
        else:
            message = "Seats were booked by a concurrent request"
        super().__init__(message, conflicting_seats=seats)


class BusBusyError(BookingServiceError):
    """Per-bus lock could not be acquired in time"""
    code = "conflict"
    status_code = 409

    def __init__(self, bus_id: int):
        super().__init__(
            f"Bus {bus_id} is busy with another booking, please retry",
            bus_id=bus_id,
        )


class ForbiddenError(BookingServiceError):
    code = "forbidden"
    status_code = 403


class AlreadyCancelledError(BookingServiceError):
    code = "already_cancelled"

    def __init__(self, booking_id: int):
        super().__init__("Booking is already cancelled", booking_id=booking_id)


class TooLateToCancelError(BookingServiceError):
    code = "too_late_to_cancel"

    def __init__(self, cutoff_hours: int):
        super().__init__(
            f"Cannot cancel booking less than {cutoff_hours} hours before departure",
            cutoff_hours=cutoff_hours,
        )


class DuplicateBusNumberError(BookingServiceError):
    code = "duplicate_bus_number"
    status_code = 409

    def __init__(self, bus_number: str):
        super().__init__("Bus with this number already exists", bus_number=bus_number)


class SeatCapacityError(BookingServiceError):
    """total_seats edit would orphan confirmed seats"""
    code = "seat_capacity"
    status_code = 409


class BusHasActiveBookingsError(BookingServiceError):
    code = "bus_has_active_bookings"
    status_code = 409

    def __init__(self, bus_id: int, active_bookings: int):
        super().__init__(
            f"Bus {bus_id} has {active_bookings} confirmed bookings",
            bus_id=bus_id,
            active_bookings=active_bookings,
        )
