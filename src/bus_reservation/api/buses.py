"""
Buses API endpoints - public read-only catalog
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bus_reservation.core.database import get_db
from bus_reservation.middleware.rate_limiter import limiter
from bus_reservation.schemas import BookedSeatsResponse, BusListResponse, BusResponse
from bus_reservation.services import BookingService, BusService

router = APIRouter()


@router.get("/buses/search", response_model=BusListResponse)
@limiter.limit("30/minute")
async def search_buses(
    request: Request,
    origin: Optional[str] = Query(None, max_length=100, description="Source city"),
    destination: Optional[str] = Query(None, max_length=100, description="Destination city"),
    travel_date: Optional[date] = Query(None, description="Travel date (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
):
    """
    Search buses with seats left

    - **origin** / **destination**: case-insensitive partial match
    - **travel_date**: exact date
    """
    buses = await BusService.search_buses(
        db=db,
        origin=origin,
        destination=destination,
        travel_date=travel_date,
    )
    return BusListResponse(
        buses=[BusResponse.model_validate(bus) for bus in buses],
        count=len(buses),
    )


@router.get("/buses/{bus_id}", response_model=BusResponse)
@limiter.limit("60/minute")
async def get_bus(
    request: Request,
    bus_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a specific bus by ID"""
    bus = await BusService.get_bus(db=db, bus_id=bus_id)
    return BusResponse.model_validate(bus)


@router.get("/buses/{bus_id}/booked-seats", response_model=BookedSeatsResponse)
@limiter.limit("60/minute")
async def get_booked_seats(
    request: Request,
    bus_id: int,
    db: AsyncSession = Depends(get_db),
):
    """
    Seats held by confirmed bookings, for rendering a seat map

    Advisory only: a seat shown free here can still be taken before the
    booking request arrives.
    """
    seats = await BookingService.get_booked_seats(db=db, bus_id=bus_id)
    return BookedSeatsResponse(bus_id=bus_id, booked_seats=seats, count=len(seats))
