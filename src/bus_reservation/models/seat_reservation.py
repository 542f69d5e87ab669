"""
SeatReservation model - CRITICAL for concurrency control.

One row per seat held by a confirmed booking. The unique (bus_id, seat_number)
constraint makes the database itself refuse a double booking, even when two
processes pass the application-level conflict check at the same time. Rows
are deleted in the same transaction that cancels their booking.
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from bus_reservation.core.database import Base
from bus_reservation.core.timeutils import utcnow


class SeatReservation(Base):
    __tablename__ = "seat_reservations"
    __table_args__ = (
        UniqueConstraint('bus_id', 'seat_number', name='uq_bus_seat'),
    )

    id = Column(Integer, primary_key=True, index=True)
    bus_id = Column(Integer, ForeignKey("buses.id", ondelete="CASCADE"), nullable=False, index=True)
    seat_number = Column(Integer, nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    booking = relationship("Booking", back_populates="seat_reservations")

    def __repr__(self):
        return f"<SeatReservation(bus_id={self.bus_id}, seat={self.seat_number}, booking_id={self.booking_id})>"
