"""
SQLAlchemy Models for the Bus Ticket Reservation System

Import all models here for easy access and to ensure proper relationship setup.
"""
from bus_reservation.core.database import Base

from bus_reservation.models.user import User, UserRole
from bus_reservation.models.bus import Bus
from bus_reservation.models.booking import Booking, BookingStatus, PaymentStatus
from bus_reservation.models.seat_reservation import SeatReservation

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Bus",
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "SeatReservation",
]
