"""
Pydantic schemas for Bus resources
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bus_reservation.core.config import settings

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def _pad_time(value: Optional[str]) -> Optional[str]:
    """'8:05' -> '08:05' so departure times sort as strings"""
    if value is None:
        return value
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


class BusBase(BaseModel):
    """Base Bus schema"""
    bus_number: str = Field(..., min_length=1, max_length=32, description="Registration number")
    origin: str = Field(..., min_length=1, max_length=100, description="Source city")
    destination: str = Field(..., min_length=1, max_length=100, description="Destination city")
    travel_date: date = Field(..., description="Travel date")
    departure_time: str = Field(..., pattern=TIME_PATTERN, description="Departure time, HH:MM (24h)")
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2, description="Price per seat")


class BusCreate(BusBase):
    total_seats: int = Field(..., ge=1, le=settings.MAX_SEATS_PER_BUS)

    @field_validator('bus_number', 'origin', 'destination')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator('departure_time')
    @classmethod
    def pad_time(cls, v: str) -> str:
        return _pad_time(v)


class BusUpdate(BaseModel):
    """Partial update; available_seats is never client-settable"""
    bus_number: Optional[str] = Field(None, min_length=1, max_length=32)
    origin: Optional[str] = Field(None, min_length=1, max_length=100)
    destination: Optional[str] = Field(None, min_length=1, max_length=100)
    travel_date: Optional[date] = None
    departure_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    total_seats: Optional[int] = Field(None, ge=1, le=settings.MAX_SEATS_PER_BUS)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)

    @field_validator('bus_number', 'origin', 'destination')
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v.strip() if v is not None else v

    @field_validator('departure_time')
    @classmethod
    def pad_time(cls, v: Optional[str]) -> Optional[str]:
        return _pad_time(v)


class BusResponse(BusBase):
    """Bus response schema"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    total_seats: int
    available_seats: int = Field(..., description="Seats still bookable")
    is_sold_out: bool
    created_at: datetime
    updated_at: datetime


class BusSummary(BaseModel):
    """Bus fields shown alongside a booking"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    bus_number: str
    origin: str
    destination: str
    travel_date: date
    departure_time: str
    price: Decimal


class BusListResponse(BaseModel):
    buses: List[BusResponse]
    count: int


class BookedSeatsResponse(BaseModel):
    """Seat map input: seats held by confirmed bookings (advisory)"""
    bus_id: int
    booked_seats: List[int]
    count: int
