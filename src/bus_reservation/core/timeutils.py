"""
Clock helpers.

Bus schedules are stored as a calendar date plus an ``HH:MM`` wall-clock time
without a zone. They are interpreted in ``settings.TIMEZONE``; audit
timestamps (created_at etc.) are naive UTC.
"""
from datetime import date, datetime, time, timezone
from typing import Optional

from bus_reservation.core.config import settings


def utcnow() -> datetime:
    """Naive UTC timestamp for audit columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_local(now: Optional[datetime] = None) -> datetime:
    """Aware 'now' in the service timezone; naive inputs are taken as UTC"""
    if now is None:
        return datetime.now(settings.tz)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(settings.tz)


def today_local(now: Optional[datetime] = None) -> date:
    return now_local(now).date()


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def departure_instant(travel_date: date, departure_time: str) -> datetime:
    """Combine a bus's date and HH:MM into an aware datetime"""
    return datetime.combine(travel_date, parse_hhmm(departure_time), tzinfo=settings.tz)
