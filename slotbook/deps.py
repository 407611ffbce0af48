# slotbook/deps.py
# FastAPI dependencies shared by the routers

from functools import lru_cache

from .config import settings
from .database import SessionLocal
from .services.ledger import BookingLedger


def get_host_id() -> int:
    return settings.host_id


@lru_cache
def get_ledger() -> BookingLedger:
    from .redis_client import redis_client

    return BookingLedger(
        session_factory=SessionLocal,
        redis=redis_client,
        lock_ttl_seconds=settings.lock_ttl_seconds,
        lock_wait_seconds=settings.lock_wait_seconds,
    )
