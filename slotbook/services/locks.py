# slotbook/services/locks.py
"""
Per-event-type reservation lock in Redis.

Key format: lock:booking:event_type:{event_type_id}
Value: random owner token; only the owner deletes it.
TTL guards against a crashed holder; wait is bounded and ends in LockTimeout.
An unreachable Redis on acquire is also a LockTimeout (retryable); on release
it is only logged and the TTL frees the key.
"""

import logging
import time
from uuid import uuid4

from redis import Redis
from redis.exceptions import RedisError, WatchError

from .errors import LockTimeout

logger = logging.getLogger(__name__)

KEY_PREFIX = "lock:booking:event_type"
POLL_INTERVAL = 0.02


def event_type_lock_key(event_type_id: int) -> str:
    return f"{KEY_PREFIX}:{event_type_id}"


class ReservationLock:
    """Context manager: SET NX PX with polling until wait_seconds elapses."""

    def __init__(self, redis: Redis, event_type_id: int, ttl_seconds: float, wait_seconds: float):
        self.redis = redis
        self.key = event_type_lock_key(event_type_id)
        self.ttl_ms = int(ttl_seconds * 1000)
        self.wait_seconds = wait_seconds
        self.token = uuid4().hex

    def acquire(self) -> None:
        deadline = time.monotonic() + self.wait_seconds
        while True:
            try:
                acquired = self.redis.set(self.key, self.token, nx=True, px=self.ttl_ms)
            except RedisError as e:
                logger.error(f"Lock acquire failed on {self.key}: {e}")
                raise LockTimeout("Booking system is unavailable, please retry") from e
            if acquired:
                return
            if time.monotonic() >= deadline:
                logger.warning(f"Lock wait exceeded {self.wait_seconds}s: {self.key}")
                raise LockTimeout("Booking system is busy, please retry")
            time.sleep(POLL_INTERVAL)

    def release(self) -> None:
        # Runs after commit: must not raise
        try:
            with self.redis.pipeline() as pipe:
                try:
                    pipe.watch(self.key)
                    value = pipe.get(self.key)
                    if isinstance(value, bytes):
                        value = value.decode()
                    if value != self.token:
                        pipe.unwatch()
                        logger.warning(f"Lock expired before release: {self.key}")
                        return
                    pipe.multi()
                    pipe.delete(self.key)
                    pipe.execute()
                except WatchError:
                    logger.warning(f"Lock changed during release: {self.key}")
        except RedisError as e:
            logger.error(f"Lock release failed on {self.key}, left to expire: {e}")

    def __enter__(self) -> "ReservationLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
