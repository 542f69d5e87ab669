"""
Services package exports
"""
from bus_reservation.services.errors import (
    AlreadyCancelledError,
    BookingNotFoundError,
    BookingServiceError,
    BusBusyError,
    BusHasActiveBookingsError,
    BusNotFoundError,
    DuplicateBusNumberError,
    ForbiddenError,
    InsufficientCapacityError,
    InvalidRequestError,
    InvalidSeatError,
    NotFoundError,
    PastDateError,
    SeatCapacityError,
    SeatConflictError,
    TooLateToCancelError,
)
from bus_reservation.services.bus_lock import BusLockManager, bus_locks
from bus_reservation.services.booking_service import BookingService
from bus_reservation.services.bus_service import BusService

__all__ = [
    "BookingService",
    "BusService",
    "BusLockManager",
    "bus_locks",
    "BookingServiceError",
    "NotFoundError",
    "BusNotFoundError",
    "BookingNotFoundError",
    "InvalidRequestError",
    "InvalidSeatError",
    "PastDateError",
    "InsufficientCapacityError",
    "SeatConflictError",
    "BusBusyError",
    "ForbiddenError",
    "AlreadyCancelledError",
    "TooLateToCancelError",
    "DuplicateBusNumberError",
    "SeatCapacityError",
    "BusHasActiveBookingsError",
]
