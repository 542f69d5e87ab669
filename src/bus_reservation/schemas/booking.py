"""Pydantic schemas for Booking resources"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from bus_reservation.core.config import settings
from bus_reservation.models.booking import BookingStatus, PaymentStatus
from bus_reservation.schemas.bus import BusSummary
from bus_reservation.schemas.user import UserSummary


class BookingCreate(BaseModel):
    bus_id: int = Field(..., gt=0)
    # Emptiness, duplicates and range are checked by the reservation itself
    seats_booked: List[StrictInt] = Field(..., max_length=settings.MAX_SEATS_PER_BUS)


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    bus_id: int
    seats_booked: List[int]
    total_amount: Decimal
    status: BookingStatus
    payment_status: PaymentStatus
    created_at: datetime
    cancelled_at: Optional[datetime] = None
    bus: Optional[BusSummary] = None
    user: Optional[UserSummary] = None

    @classmethod
    def from_booking(cls, booking):
        """Convert Booking ORM model (bus and user loaded) to response"""
        return cls(
            id=booking.id,
            user_id=booking.user_id,
            bus_id=booking.bus_id,
            seats_booked=list(booking.seats_booked),
            total_amount=booking.total_amount,
            status=booking.status,
            payment_status=booking.payment_status,
            created_at=booking.created_at,
            cancelled_at=booking.cancelled_at,
            bus=BusSummary.model_validate(booking.bus) if booking.bus else None,
            user=UserSummary.model_validate(booking.user) if booking.user else None,
        )


class BookingListResponse(BaseModel):
    bookings: List[BookingResponse]
    total: int
