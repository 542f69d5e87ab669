"""
Per-bus mutual exclusion for reservation, cancellation and seat-count edits.

Only one of those transactions per bus runs at a time inside this process;
different buses never wait on each other. Multi-process safety comes from the
store (unique seat index + conditional decrement), this lock just keeps a
single worker from racing itself.
"""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Dict

from bus_reservation.core.config import settings
from bus_reservation.core.metrics import bus_lock_wait_seconds
from bus_reservation.services.errors import BusBusyError

logger = logging.getLogger(__name__)


class BusLockManager:
    def __init__(self, timeout: float = None):
        self.timeout = timeout
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}

    @property
    def active_keys(self) -> int:
        """Number of buses with a holder or waiter"""
        return len(self._locks)

    @asynccontextmanager
    async def lock(self, bus_id: int):
        """
        Hold the lock for ``bus_id``.

        Usage:
            async with bus_locks.lock(bus_id):
                ...check and write...

        Raises BusBusyError if the lock is not acquired within the timeout.
        """
        timeout = self.timeout if self.timeout is not None else settings.BUS_LOCK_TIMEOUT_SECONDS
        lock = self._locks.get(bus_id)
        if lock is None:
            lock = self._locks[bus_id] = asyncio.Lock()
        self._users[bus_id] = self._users.get(bus_id, 0) + 1

        start = time.monotonic()
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Timed out waiting for lock on bus {bus_id}", extra={'bus_id': bus_id})
                raise BusBusyError(bus_id)
            bus_lock_wait_seconds.observe(time.monotonic() - start)

            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[bus_id] -= 1
            if self._users[bus_id] == 0:
                del self._users[bus_id]
                del self._locks[bus_id]


# Global lock manager shared by all requests in this process
bus_locks = BusLockManager()
