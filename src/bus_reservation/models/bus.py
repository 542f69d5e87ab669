"""
Bus model - one scheduled departure with a finite seat capacity.

available_seats is owned by the reservation and cancellation transactions;
admin edits may only change it indirectly through total_seats.
"""
from sqlalchemy import CheckConstraint, Column, Date, DateTime, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship

from bus_reservation.core.database import Base
from bus_reservation.core.timeutils import departure_instant, utcnow


class Bus(Base):
    __tablename__ = "buses"
    __table_args__ = (
        CheckConstraint('available_seats >= 0', name='ck_bus_available_non_negative'),
        CheckConstraint('available_seats <= total_seats', name='ck_bus_available_le_total'),
        Index('ix_bus_route_date', 'origin', 'destination', 'travel_date'),
    )

    id = Column(Integer, primary_key=True, index=True)
    bus_number = Column(String(32), unique=True, nullable=False, index=True)
    origin = Column(String(100), nullable=False)
    destination = Column(String(100), nullable=False)
    travel_date = Column(Date, nullable=False, index=True)
    departure_time = Column(String(5), nullable=False)  # 'HH:MM'
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    bookings = relationship("Booking", back_populates="bus")

    def __repr__(self):
        return (f"<Bus(id={self.id}, number='{self.bus_number}', "
                f"{self.origin}->{self.destination} {self.travel_date} {self.departure_time}, "
                f"seats={self.available_seats}/{self.total_seats})>")

    @property
    def departs_at(self):
        """Aware departure instant in the service timezone"""
        return departure_instant(self.travel_date, self.departure_time)

    @property
    def is_sold_out(self) -> bool:
        return self.available_seats <= 0
