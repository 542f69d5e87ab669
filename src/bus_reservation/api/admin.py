"""
Admin API endpoints - fleet and booking management
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bus_reservation.api.deps import require_admin
from bus_reservation.core.database import get_db
from bus_reservation.middleware.rate_limiter import limiter
from bus_reservation.models import BookingStatus, User
from bus_reservation.schemas import (
    BookingListResponse,
    BookingResponse,
    BusCreate,
    BusListResponse,
    BusResponse,
    BusUpdate,
)
from bus_reservation.services import BookingService, BusService

router = APIRouter(prefix="/admin")


@router.get("/buses", response_model=BusListResponse)
@limiter.limit("60/minute")
async def list_buses(
    request: Request,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All buses, newest first"""
    buses = await BusService.list_buses(db=db)
    return BusListResponse(
        buses=[BusResponse.model_validate(bus) for bus in buses],
        count=len(buses),
    )


@router.post("/buses", response_model=BusResponse, status_code=201)
@limiter.limit("30/minute")
async def create_bus(
    request: Request,
    bus_data: BusCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Add a bus to the fleet schedule"""
    bus = await BusService.create_bus(db=db, data=bus_data.model_dump())
    return BusResponse.model_validate(bus)


@router.put("/buses/{bus_id}", response_model=BusResponse)
@limiter.limit("30/minute")
async def update_bus(
    request: Request,
    bus_id: int,
    bus_data: BusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Partially update a bus; seat availability is recomputed, never set"""
    bus = await BusService.update_bus(
        db=db,
        bus_id=bus_id,
        data=bus_data.model_dump(exclude_unset=True),
    )
    return BusResponse.model_validate(bus)


@router.delete("/buses/{bus_id}")
@limiter.limit("30/minute")
async def delete_bus(
    request: Request,
    bus_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a bus that has no confirmed bookings"""
    await BusService.delete_bus(db=db, bus_id=bus_id)
    return {"message": "Bus deleted successfully", "bus_id": bus_id}


@router.get("/bookings", response_model=BookingListResponse)
@limiter.limit("30/minute")
async def list_all_bookings(
    request: Request,
    status: Optional[BookingStatus] = Query(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Every booking with user and bus details"""
    bookings = await BookingService.list_all_bookings(db=db, status=status)
    return BookingListResponse(
        bookings=[BookingResponse.from_booking(b) for b in bookings],
        total=len(bookings),
    )
