"""
Bus catalog service - search and admin fleet management
"""
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bus_reservation.core.timeutils import today_local, utcnow
from bus_reservation.models import Booking, BookingStatus, Bus, SeatReservation
from bus_reservation.services.bus_lock import BusLockManager, bus_locks
from bus_reservation.services.cache_service import CacheService
from bus_reservation.services.errors import (
    BookingServiceError,
    BusHasActiveBookingsError,
    BusNotFoundError,
    DuplicateBusNumberError,
    PastDateError,
    SeatCapacityError,
)

logger = logging.getLogger(__name__)


def normalize_bus_number(bus_number: str) -> str:
    return bus_number.strip().upper()


def contains_pattern(text: str) -> str:
    """Substring LIKE pattern with %, _ and the escape char taken literally"""
    escaped = text.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class BusService:
    """Service for bus catalog operations"""

    @staticmethod
    async def search_buses(
        db: AsyncSession,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        travel_date: Optional[date] = None,
    ) -> List[Bus]:
        """Search buses with free seats by city (case-insensitive substring) and date"""
        query = select(Bus).where(Bus.available_seats > 0)

        if origin and origin.strip():
            query = query.where(Bus.origin.ilike(contains_pattern(origin), escape="\\"))
        if destination and destination.strip():
            query = query.where(Bus.destination.ilike(contains_pattern(destination), escape="\\"))
        if travel_date:
            query = query.where(Bus.travel_date == travel_date)

        query = query.order_by(Bus.travel_date.asc(), Bus.departure_time.asc())

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def list_buses(db: AsyncSession) -> List[Bus]:
        """All buses, newest first"""
        result = await db.execute(select(Bus).order_by(Bus.created_at.desc(), Bus.id.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def get_bus(db: AsyncSession, bus_id: int) -> Bus:
        bus = await db.get(Bus, bus_id, populate_existing=True)
        if bus is None:
            raise BusNotFoundError(bus_id)
        return bus

    @staticmethod
    async def create_bus(db: AsyncSession, data: Dict[str, Any], now: Optional[datetime] = None) -> Bus:
        """
        Create a bus; available_seats starts equal to total_seats.

        ``data`` holds bus_number, origin, destination, travel_date,
        departure_time, total_seats and price.
        """
        bus_number = normalize_bus_number(data["bus_number"])

        if data["travel_date"] < today_local(now):
            raise PastDateError("Travel date cannot be in the past", travel_date=data["travel_date"].isoformat())

        if await BusService._number_taken(db, bus_number):
            raise DuplicateBusNumberError(bus_number)

        bus = Bus(
            bus_number=bus_number,
            origin=data["origin"].strip(),
            destination=data["destination"].strip(),
            travel_date=data["travel_date"],
            departure_time=data["departure_time"],
            total_seats=data["total_seats"],
            available_seats=data["total_seats"],
            price=data["price"],
        )
        db.add(bus)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create of the same number
            await db.rollback()
            raise DuplicateBusNumberError(bus_number)
        await db.refresh(bus)

        logger.info(f"Bus {bus.bus_number} created", extra={'bus_id': bus.id})
        return bus

    @staticmethod
    async def update_bus(
        db: AsyncSession,
        bus_id: int,
        data: Dict[str, Any],
        now: Optional[datetime] = None,
        locks: Optional[BusLockManager] = None,
    ) -> Bus:
        """
        Partially update a bus.

        A new total_seats must still cover every confirmed seat number;
        available_seats is then recomputed from the held seats.
        """
        locks = locks or bus_locks

        async with locks.lock(bus_id):
            try:
                bus = await db.get(Bus, bus_id, with_for_update=True, populate_existing=True)
                if bus is None:
                    raise BusNotFoundError(bus_id)

                if data.get("bus_number") is not None:
                    bus_number = normalize_bus_number(data["bus_number"])
                    if bus_number != bus.bus_number and await BusService._number_taken(db, bus_number):
                        raise DuplicateBusNumberError(bus_number)
                    bus.bus_number = bus_number

                if data.get("travel_date") is not None:
                    if data["travel_date"] < today_local(now):
                        raise PastDateError(
                            "Travel date cannot be in the past",
                            travel_date=data["travel_date"].isoformat(),
                        )
                    bus.travel_date = data["travel_date"]

                for field in ("origin", "destination"):
                    if data.get(field) is not None:
                        setattr(bus, field, data[field].strip())
                if data.get("departure_time") is not None:
                    bus.departure_time = data["departure_time"]
                if data.get("price") is not None:
                    bus.price = data["price"]

                if data.get("total_seats") is not None and data["total_seats"] != bus.total_seats:
                    await BusService._resize(db, bus, data["total_seats"])

                bus.updated_at = utcnow()
                new_number = bus.bus_number
                try:
                    await db.commit()
                except IntegrityError:
                    # Lost a race with a concurrent rename to the same number
                    raise DuplicateBusNumberError(new_number)
            except BookingServiceError:
                await db.rollback()
                raise

        await CacheService.invalidate_bus_seats(bus_id)
        logger.info(f"Bus {bus_id} updated", extra={'bus_id': bus_id})
        return await BusService.get_bus(db, bus_id)

    @staticmethod
    async def _resize(db: AsyncSession, bus: Bus, new_total: int):
        held = await db.execute(
            select(func.count(SeatReservation.id), func.max(SeatReservation.seat_number))
            .where(SeatReservation.bus_id == bus.id)
        )
        held_count, highest_seat = held.one()
        if highest_seat is not None and highest_seat > new_total:
            raise SeatCapacityError(
                f"Seat {highest_seat} is booked; total seats cannot drop below it",
                highest_booked_seat=highest_seat,
            )
        bus.total_seats = new_total
        bus.available_seats = new_total - held_count

    @staticmethod
    async def delete_bus(
        db: AsyncSession,
        bus_id: int,
        locks: Optional[BusLockManager] = None,
    ) -> None:
        """Delete a bus with no confirmed bookings, along with its cancelled history"""
        locks = locks or bus_locks

        async with locks.lock(bus_id):
            try:
                bus = await db.get(Bus, bus_id, with_for_update=True, populate_existing=True)
                if bus is None:
                    raise BusNotFoundError(bus_id)

                active = await db.execute(
                    select(func.count(Booking.id))
                    .where(Booking.bus_id == bus_id, Booking.status == BookingStatus.CONFIRMED)
                )
                active_count = active.scalar()
                if active_count:
                    raise BusHasActiveBookingsError(bus_id, active_count)

                await db.execute(delete(Booking).where(Booking.bus_id == bus_id).execution_options(synchronize_session=False))
                await db.execute(delete(Bus).where(Bus.id == bus_id).execution_options(synchronize_session=False))
                await db.commit()
            except BookingServiceError:
                await db.rollback()
                raise

        await CacheService.invalidate_bus_seats(bus_id)
        logger.info(f"Bus {bus_id} deleted", extra={'bus_id': bus_id})

    @staticmethod
    async def _number_taken(db: AsyncSession, bus_number: str) -> bool:
        result = await db.execute(select(Bus.id).where(Bus.bus_number == bus_number))
        return result.scalar_one_or_none() is not None
