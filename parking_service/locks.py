import asyncio
import logging
from contextlib import asynccontextmanager

from redis.exceptions import LockError

from .errors import BookingBusy

logger = logging.getLogger(__name__)


def location_key(location_id: int) -> str:
    return f"location:{location_id}"


class LocalLocks:
    """One asyncio.Lock per key; enough when a single process serves bookings."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            yield


class RedisLocks:
    """
    Redis-backed locks (shared across service instances).

    A lock expires after ``timeout`` seconds so a crashed holder cannot block
    a location forever; waiting longer than ``wait`` seconds fails the call
    with BookingBusy instead of retrying.
    """

    def __init__(self, redis_client, timeout: float = 10.0, wait: float = 5.0):
        self.redis = redis_client
        self.timeout = timeout
        self.wait = wait

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self.redis.lock(f"lock:{key}", timeout=self.timeout, blocking_timeout=self.wait)
        acquired = await lock.acquire()
        if not acquired:
            raise BookingBusy(f"Another booking for {key} is in progress, try again")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as e:
                # expired while held: the critical section outlived the timeout
                logger.error("lock %s released after expiry: %s", key, e)
