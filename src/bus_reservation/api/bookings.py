"""Bookings API endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bus_reservation.api.deps import get_current_user
from bus_reservation.core.database import get_db
from bus_reservation.middleware.rate_limiter import limiter
from bus_reservation.models import BookingStatus, User
from bus_reservation.schemas import BookingCreate, BookingListResponse, BookingResponse
from bus_reservation.services import BookingService

router = APIRouter()


@router.post("/bookings", response_model=BookingResponse, status_code=201)
@limiter.limit("10/minute")
async def create_booking(
    request: Request,
    booking_data: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Book seats on a bus

    Errors:
    - 404 bus not found
    - 400 empty/duplicate selection, invalid seat numbers, past date
    - 409 not enough seats left, seats already booked, bus busy
    """
    booking = await BookingService.create_booking(
        db=db,
        user_id=current_user.id,
        bus_id=booking_data.bus_id,
        seat_numbers=booking_data.seats_booked,
    )
    return BookingResponse.from_booking(booking)


@router.get("/bookings", response_model=BookingListResponse)
@limiter.limit("30/minute")
async def list_my_bookings(
    request: Request,
    status: Optional[BookingStatus] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's bookings, newest first"""
    bookings = await BookingService.get_user_bookings(
        db=db,
        user_id=current_user.id,
        status=status,
    )
    return BookingListResponse(
        bookings=[BookingResponse.from_booking(b) for b in bookings],
        total=len(bookings),
    )


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
@limiter.limit("60/minute")
async def get_booking(
    request: Request,
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a booking owned by the caller (admins may read any)"""
    booking = await BookingService.get_booking(
        db=db,
        booking_id=booking_id,
        user_id=current_user.id,
        is_admin=current_user.is_admin,
    )
    return BookingResponse.from_booking(booking)


@router.patch("/bookings/{booking_id}/cancel", response_model=BookingResponse)
@limiter.limit("10/minute")
async def cancel_booking(
    request: Request,
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Cancel a booking

    Allowed for the owner or an admin, up to 2 hours before departure.
    """
    booking = await BookingService.cancel_booking(
        db=db,
        booking_id=booking_id,
        user_id=current_user.id,
        is_admin=current_user.is_admin,
    )
    return BookingResponse.from_booking(booking)
