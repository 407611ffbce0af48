"""
Redis event consumer loops.

- notifications_consumer_loop: delivery from events:notifications
- retry_consumer_loop: moves failed events back from the retry queue

Started together by `python -m slotbook.notifier`.
"""

import asyncio
import json
import logging

import redis.asyncio as aioredis

from ..services.events import NOTIFICATIONS_QUEUE

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_QUEUE = f"{NOTIFICATIONS_QUEUE}:retry"
DEAD_QUEUE = f"{NOTIFICATIONS_QUEUE}:dead"


async def notifications_consumer_loop(r: aioredis.Redis) -> None:
    """
    Consume events from events:notifications.

    Uses BRPOP with 5s timeout to avoid busy-waiting.
    On failure, retries up to MAX_RETRIES, then moves to dead-letter queue.
    """
    logger.info("notifications_consumer_loop started")

    while True:
        try:
            result = await r.brpop(NOTIFICATIONS_QUEUE, timeout=5)
            if result is None:
                continue

            _, raw = result
            await _process_event_safe(r, raw, RETRY_QUEUE, DEAD_QUEUE)

        except asyncio.CancelledError:
            logger.info("notifications_consumer_loop cancelled")
            raise
        except Exception:
            logger.exception("notifications_consumer_loop error, retrying in 2s")
            await asyncio.sleep(2)


async def _process_event_safe(
    r: aioredis.Redis,
    raw: str,
    retry_queue: str,
    dead_queue: str,
) -> None:
    """
    Parse and process a single event with retry logic.

    On failure:
    - If attempts < MAX_RETRIES → push to retry queue
    - Otherwise → push to dead-letter queue
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in event queue: {raw[:200]}")
        await r.rpush(dead_queue, raw)
        return

    attempt = data.get("_attempt", 1)

    try:
        from . import process_event
        await process_event(data)
    except Exception:
        logger.exception(
            f"Failed to process event type={data.get('type')} "
            f"(attempt {attempt}/{MAX_RETRIES})"
        )

        if attempt < MAX_RETRIES:
            data["_attempt"] = attempt + 1
            await r.rpush(retry_queue, json.dumps(data))
            logger.info(f"Event re-queued to {retry_queue} (attempt {attempt + 1})")
        else:
            await r.rpush(dead_queue, json.dumps(data))
            logger.warning(
                f"Event moved to dead-letter queue {dead_queue}: "
                f"type={data.get('type')}"
            )


async def move_retries(r: aioredis.Redis) -> int:
    """Move everything currently in the retry queue back to the main queue."""
    moved = 0
    while True:
        raw = await r.lpop(RETRY_QUEUE)
        if not raw:
            return moved
        await r.rpush(NOTIFICATIONS_QUEUE, raw)
        moved += 1


async def retry_consumer_loop(r: aioredis.Redis, interval: float = 5.0) -> None:
    """Re-insert retried events into the main queue after a delay."""
    logger.info("retry_consumer_loop started")

    while True:
        try:
            await asyncio.sleep(interval)
            moved = await move_retries(r)
            if moved:
                logger.info(f"Retry: moved {moved} event(s) {RETRY_QUEUE} → {NOTIFICATIONS_QUEUE}")

        except asyncio.CancelledError:
            logger.info("retry_consumer_loop cancelled")
            raise
        except Exception:
            logger.exception("retry_consumer_loop error, retrying in 5s")
            await asyncio.sleep(5)
