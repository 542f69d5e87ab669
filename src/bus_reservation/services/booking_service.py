"""
Booking Service - seat reservation and cancellation transactions

Concurrency discipline for one bus:
- in-process: BusLockManager serializes create/cancel per bus_id
- cross-process: SELECT ... FOR UPDATE on the bus row (PostgreSQL), the
  unique (bus_id, seat_number) index on seat_reservations and a conditional
  capacity decrement; a commit the store rejects is retried from scratch
  up to BOOKING_MAX_ATTEMPTS times
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bus_reservation.core.config import settings
from bus_reservation.core.metrics import (
    booking_commit_retries_total,
    booking_creation_duration_seconds,
    bookings_cancelled_total,
    bookings_created_total,
    record_rejection,
    track_time,
)
from bus_reservation.core.timeutils import now_local, today_local, utcnow
from bus_reservation.models import Booking, BookingStatus, Bus, PaymentStatus, SeatReservation
from bus_reservation.services.bus_lock import BusLockManager, bus_locks
from bus_reservation.services.cache_service import CacheService
from bus_reservation.services.errors import (
    AlreadyCancelledError,
    BookingNotFoundError,
    BookingServiceError,
    BusNotFoundError,
    ForbiddenError,
    InsufficientCapacityError,
    InvalidRequestError,
    InvalidSeatError,
    PastDateError,
    SeatConflictError,
    TooLateToCancelError,
)

logger = logging.getLogger(__name__)


class CommitRejected(Exception):
    """The store refused the write phase; the whole attempt must be retried"""

    SEAT_TAKEN = "seat_taken"
    CAPACITY = "capacity"

    def __init__(self, reason: str, seats: Iterable[int] = (), available_seats: int = 0):
        super().__init__(reason)
        self.reason = reason
        self.seats = list(seats)
        self.available_seats = available_seats

    def as_domain_error(self) -> BookingServiceError:
        if self.reason == self.CAPACITY:
            return InsufficientCapacityError(self.available_seats)
        return SeatConflictError(self.seats)


class BookingService:
    """Service for creating, cancelling and querying bookings"""

    @staticmethod
    @track_time(booking_creation_duration_seconds)
    async def create_booking(
        db: AsyncSession,
        user_id: int,
        bus_id: int,
        seat_numbers: List[int],
        now: Optional[datetime] = None,
        locks: Optional[BusLockManager] = None,
    ) -> Booking:
        """
        Reserve ``seat_numbers`` on ``bus_id`` for ``user_id``.

        Checks run in this order, each with its own error: bus exists,
        selection non-empty and distinct, seats within 1..total_seats, bus
        date not in the past, enough capacity, no seat held by another
        confirmed booking. The booking row, its seat reservations and the
        capacity decrement commit together or not at all.

        Cache invalidation:
        - Deletes bus:{bus_id}:booked_seats
        """
        locks = locks or bus_locks
        seats = list(seat_numbers)
        max_attempts = settings.BOOKING_MAX_ATTEMPTS

        async with locks.lock(bus_id):
            attempt = 1
            while True:
                try:
                    booking_id = await BookingService._reserve_once(db, user_id, bus_id, seats, now)
                    break
                except CommitRejected as rejected:
                    await db.rollback()
                    if attempt >= max_attempts:
                        if rejected.reason == CommitRejected.SEAT_TAKEN and not rejected.seats:
                            # The index names no seat; read back what is held now
                            rejected.seats = await BookingService._held_seats(db, bus_id, seats)
                        error = rejected.as_domain_error()
                        record_rejection(error.code)
                        logger.warning(
                            f"Reservation on bus {bus_id} rejected by store after {attempt} attempts",
                            extra={'bus_id': bus_id, 'user_id': user_id, 'seats': seats, 'attempt': attempt},
                        )
                        raise error
                    booking_commit_retries_total.inc()
                    logger.info(
                        f"Store rejected reservation on bus {bus_id} ({rejected.reason}), retrying",
                        extra={'bus_id': bus_id, 'user_id': user_id, 'seats': seats, 'attempt': attempt},
                    )
                    attempt += 1
                except BookingServiceError as e:
                    await db.rollback()
                    record_rejection(e.code)
                    raise

        bookings_created_total.inc()
        logger.info(
            f"Booking {booking_id} confirmed on bus {bus_id}",
            extra={'booking_id': booking_id, 'bus_id': bus_id, 'user_id': user_id, 'seats': seats},
        )

        await CacheService.invalidate_bus_seats(bus_id)

        return await BookingService._load_booking(db, booking_id)

    @staticmethod
    async def _reserve_once(
        db: AsyncSession,
        user_id: int,
        bus_id: int,
        seats: List[int],
        now: Optional[datetime],
    ) -> int:
        """One check-then-write attempt; returns the new booking id"""
        # 1. Bus exists (row-locked on PostgreSQL, re-read on every attempt)
        bus_query = (
            select(Bus)
            .where(Bus.id == bus_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        bus = (await db.execute(bus_query)).scalar_one_or_none()
        if bus is None:
            raise BusNotFoundError(bus_id)

        # 2. Non-empty, no duplicates
        if not seats:
            raise InvalidRequestError("At least one seat must be selected")
        duplicates = sorted({seat for seat in seats if seats.count(seat) > 1})
        if duplicates:
            raise InvalidRequestError(
                f"Duplicate seat numbers: {', '.join(map(str, duplicates))}",
                duplicate_seats=duplicates,
            )

        # 3. Seat numbers in range
        invalid = [seat for seat in seats if seat < 1 or seat > bus.total_seats]
        if invalid:
            raise InvalidSeatError(invalid)

        # 4. Not a past departure date
        if bus.travel_date < today_local(now):
            raise PastDateError("Cannot book seats for past dates", travel_date=bus.travel_date.isoformat())

        # 5. Capacity
        if bus.available_seats < len(seats):
            raise InsufficientCapacityError(bus.available_seats)

        # 6. No seat held by another confirmed booking
        taken = await BookingService._held_seats(db, bus_id, seats)
        if taken:
            raise SeatConflictError(taken)

        # Write phase
        booking = Booking(
            user_id=user_id,
            bus_id=bus_id,
            seats_booked=seats,
            total_amount=bus.price * len(seats),
            status=BookingStatus.CONFIRMED,
            payment_status=PaymentStatus.COMPLETED,
        )
        db.add(booking)
        await db.flush()

        db.add_all(
            SeatReservation(bus_id=bus_id, seat_number=seat, booking_id=booking.id)
            for seat in seats
        )
        try:
            await db.flush()
        except IntegrityError:
            raise CommitRejected(CommitRejected.SEAT_TAKEN)

        decrement = (
            update(Bus)
            .where(Bus.id == bus_id, Bus.available_seats >= len(seats))
            .values(available_seats=Bus.available_seats - len(seats), updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(decrement)
        if result.rowcount != 1:
            raise CommitRejected(CommitRejected.CAPACITY, available_seats=bus.available_seats)

        booking_id = booking.id
        try:
            await db.commit()
        except IntegrityError:
            raise CommitRejected(CommitRejected.SEAT_TAKEN)
        return booking_id

    @staticmethod
    async def _held_seats(db: AsyncSession, bus_id: int, seats: List[int]) -> List[int]:
        query = (
            select(SeatReservation.seat_number)
            .where(SeatReservation.bus_id == bus_id)
            .where(SeatReservation.seat_number.in_(seats))
        )
        result = await db.execute(query)
        return sorted(row[0] for row in result.all())

    @staticmethod
    async def cancel_booking(
        db: AsyncSession,
        booking_id: int,
        user_id: int,
        is_admin: bool = False,
        now: Optional[datetime] = None,
        locks: Optional[BusLockManager] = None,
    ) -> Booking:
        """
        Cancel a confirmed booking and return its seats to the bus.

        Allowed for the owner or an admin, and only while the bus departs
        more than CANCELLATION_CUTOFF_HOURS from ``now``. Cancelling exactly
        at the cutoff is refused.

        Cache invalidation:
        - Deletes bus:{bus_id}:booked_seats
        """
        locks = locks or bus_locks

        booking = await db.get(Booking, booking_id)
        if booking is None:
            record_rejection(BookingNotFoundError.code)
            raise BookingNotFoundError(booking_id)
        bus_id = booking.bus_id

        async with locks.lock(bus_id):
            try:
                booking_query = (
                    select(Booking)
                    .where(Booking.id == booking_id)
                    .options(selectinload(Booking.bus))
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
                booking = (await db.execute(booking_query)).scalar_one_or_none()
                if booking is None:
                    raise BookingNotFoundError(booking_id)

                if booking.user_id != user_id and not is_admin:
                    raise ForbiddenError("Access denied", booking_id=booking_id)

                if booking.status == BookingStatus.CANCELLED:
                    raise AlreadyCancelledError(booking_id)

                cutoff_hours = settings.CANCELLATION_CUTOFF_HOURS
                cutoff = booking.bus.departs_at - timedelta(hours=cutoff_hours)
                if now_local(now) >= cutoff:
                    raise TooLateToCancelError(cutoff_hours)

                seat_count = booking.seat_count
                stamp = utcnow()

                status_update = (
                    update(Booking)
                    .where(Booking.id == booking_id, Booking.status == BookingStatus.CONFIRMED)
                    .values(status=BookingStatus.CANCELLED, cancelled_at=stamp, updated_at=stamp)
                    .execution_options(synchronize_session=False)
                )
                result = await db.execute(status_update)
                if result.rowcount != 1:
                    # Another process cancelled between our read and write
                    raise AlreadyCancelledError(booking_id)

                await db.execute(
                    delete(SeatReservation)
                    .where(SeatReservation.booking_id == booking_id)
                    .execution_options(synchronize_session=False)
                )
                await db.execute(
                    update(Bus)
                    .where(Bus.id == bus_id)
                    .values(available_seats=Bus.available_seats + seat_count, updated_at=stamp)
                    .execution_options(synchronize_session=False)
                )

                await db.commit()
            except BookingServiceError as e:
                await db.rollback()
                record_rejection(e.code)
                raise

        bookings_cancelled_total.inc()
        logger.info(
            f"Booking {booking_id} cancelled, {seat_count} seats returned to bus {bus_id}",
            extra={'booking_id': booking_id, 'bus_id': bus_id, 'user_id': user_id},
        )

        await CacheService.invalidate_bus_seats(bus_id)

        return await BookingService._load_booking(db, booking_id)

    @staticmethod
    async def get_booked_seats(db: AsyncSession, bus_id: int) -> List[int]:
        """
        Seat numbers currently held by confirmed bookings on a bus.

        Advisory: the answer may be stale by the time a reservation is
        submitted; only create_booking's own check is authoritative.

        Cache key: bus:{bus_id}:booked_seats
        """
        cached = await CacheService.get_booked_seats(bus_id)
        if cached is not None:
            return cached

        bus = await db.get(Bus, bus_id)
        if bus is None:
            raise BusNotFoundError(bus_id)

        query = (
            select(SeatReservation.seat_number)
            .where(SeatReservation.bus_id == bus_id)
            .order_by(SeatReservation.seat_number)
        )
        result = await db.execute(query)
        seats = [row[0] for row in result.all()]

        await CacheService.set_booked_seats(bus_id, seats)
        return seats

    @staticmethod
    async def get_user_bookings(
        db: AsyncSession,
        user_id: int,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """Get all bookings for a user, newest first"""
        query = (
            select(Booking)
            .where(Booking.user_id == user_id)
            .options(selectinload(Booking.bus), selectinload(Booking.user))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        if status:
            query = query.where(Booking.status == status)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def list_all_bookings(
        db: AsyncSession,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """Admin listing of every booking, newest first"""
        query = (
            select(Booking)
            .options(selectinload(Booking.bus), selectinload(Booking.user))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        if status:
            query = query.where(Booking.status == status)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_booking(
        db: AsyncSession,
        booking_id: int,
        user_id: int,
        is_admin: bool = False,
    ) -> Booking:
        """Get a booking visible to the caller"""
        booking = await BookingService._load_booking(db, booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        if booking.user_id != user_id and not is_admin:
            raise ForbiddenError("Access denied", booking_id=booking_id)
        return booking

    @staticmethod
    async def _load_booking(db: AsyncSession, booking_id: int) -> Optional[Booking]:
        query = (
            select(Booking)
            .where(Booking.id == booking_id)
            .options(selectinload(Booking.bus), selectinload(Booking.user))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()
