"""
Pydantic schemas for API request/response validation
"""
from bus_reservation.schemas.user import UserSummary
from bus_reservation.schemas.bus import (
    BookedSeatsResponse,
    BusCreate,
    BusListResponse,
    BusResponse,
    BusSummary,
    BusUpdate,
)
from bus_reservation.schemas.booking import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
)

__all__ = [
    # Users
    "UserSummary",
    # Buses
    "BusCreate",
    "BusUpdate",
    "BusResponse",
    "BusSummary",
    "BusListResponse",
    "BookedSeatsResponse",
    # Bookings
    "BookingCreate",
    "BookingResponse",
    "BookingListResponse",
]
