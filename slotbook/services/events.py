"""
slotbook/services/events.py

Event emitter: pushes notification events to a Redis queue after commit.

Queue:
- events:notifications - consumed by slotbook.notifier (retry + dead-letter)

Publishing is best-effort: a failure is logged and swallowed so it can
never undo or fail the booking operation that triggered it.
"""

import json
import time
import logging
from typing import Callable

from redis import Redis

from ..models import Bookings

logger = logging.getLogger(__name__)

NOTIFICATIONS_QUEUE = "events:notifications"


def emit_event(event_type: str, payload: dict, redis: Redis | None = None) -> bool:
    """
    Push an event to events:notifications.

    Returns:
        True if the event was queued.
    """
    if redis is None:
        from ..redis_client import redis_client as redis

    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis.rpush(NOTIFICATIONS_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {NOTIFICATIONS_QUEUE}")
        return True
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
        return False


def booking_view(booking: Bookings) -> dict:
    """Self-contained booking + event type payload; the notifier never reads the DB."""
    event_type = booking.event_type
    host = event_type.host if event_type is not None else None
    return {
        "booking_id": booking.id,
        "status": booking.status,
        "booker_name": booking.booker_name,
        "booker_email": booking.booker_email,
        "start_time": booking.start_time.isoformat(),
        "end_time": booking.end_time.isoformat(),
        "timezone": booking.timezone,
        "cancellation_reason": booking.cancellation_reason,
        "rescheduled_from_id": booking.rescheduled_from_id,
        "event_type": {
            "id": event_type.id,
            "title": event_type.title,
            "slug": event_type.slug,
            "duration": event_type.duration,
        } if event_type is not None else None,
        "host": {
            "name": host.name,
            "email": host.email,
        } if host is not None else None,
    }


def _publish(event_type: str, build_payload: Callable[[], dict], redis: Redis | None) -> bool:
    # Payload building may lazy-load; it runs after commit, so it must not raise either
    try:
        payload = build_payload()
    except Exception as e:
        logger.error(f"Failed to build {event_type} payload: {e}")
        return False
    return emit_event(event_type, payload, redis)


def notify_confirmed(booking: Bookings, redis: Redis | None = None) -> bool:
    return _publish("booking_confirmed", lambda: {"booking": booking_view(booking)}, redis)


def notify_cancelled(booking: Bookings, redis: Redis | None = None) -> bool:
    return _publish("booking_cancelled", lambda: {"booking": booking_view(booking)}, redis)


def notify_rescheduled(new_booking: Bookings, old_booking: Bookings, redis: Redis | None = None) -> bool:
    return _publish(
        "booking_rescheduled",
        lambda: {
            "booking": booking_view(new_booking),
            "previous": booking_view(old_booking),
        },
        redis,
    )
