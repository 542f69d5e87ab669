"""
Cache service for managing Redis cache
"""
import logging
from typing import List, Optional

from bus_reservation.core.config import settings
from bus_reservation.core.redis import redis_client

logger = logging.getLogger(__name__)


class CacheService:
    """Service for managing cache keys and invalidation"""

    # Cache key patterns
    BUS_BOOKED_SEATS_KEY = "bus:{bus_id}:booked_seats"

    @staticmethod
    async def get_booked_seats(bus_id: int) -> Optional[List[int]]:
        """Get cached seat-union for a bus"""
        key = CacheService.BUS_BOOKED_SEATS_KEY.format(bus_id=bus_id)
        cached = await redis_client.get(key)
        if cached is not None:
            logger.debug(f"Cache HIT: {key}")
        return cached

    @staticmethod
    async def set_booked_seats(bus_id: int, seats: List[int]) -> bool:
        """Cache seat-union (short TTL, advisory only)"""
        key = CacheService.BUS_BOOKED_SEATS_KEY.format(bus_id=bus_id)
        return await redis_client.set(key, seats, ttl=settings.REDIS_SEATS_TTL)

    @staticmethod
    async def invalidate_bus_seats(bus_id: int) -> bool:
        """Invalidate seat-related cache after a booking or cancellation"""
        key = CacheService.BUS_BOOKED_SEATS_KEY.format(bus_id=bus_id)
        return await redis_client.delete(key)
