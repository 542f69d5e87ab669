"""
Booking model - a confirmed or cancelled claim on seats of one bus
"""
from enum import Enum as PyEnum

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric
from sqlalchemy.orm import relationship

from bus_reservation.core.database import Base
from bus_reservation.core.timeutils import utcnow


class BookingStatus(PyEnum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class PaymentStatus(PyEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index('ix_booking_user_created', 'user_id', 'created_at'),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    bus_id = Column(Integer, ForeignKey("buses.id", ondelete="CASCADE"), nullable=False, index=True)
    seats_booked = Column(JSON, nullable=False)  # Ordered list of seat numbers as requested
    total_amount = Column(Numeric(10, 2), nullable=False)  # Snapshot of seats x price at booking time
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.CONFIRMED, index=True)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.COMPLETED)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    cancelled_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="bookings")
    bus = relationship("Bus", back_populates="bookings")
    seat_reservations = relationship("SeatReservation", back_populates="booking")

    def __repr__(self):
        return (f"<Booking(id={self.id}, user_id={self.user_id}, bus_id={self.bus_id}, "
                f"seats={self.seats_booked}, status='{self.status.value}')>")

    @property
    def seat_count(self) -> int:
        return len(self.seats_booked or [])

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED
