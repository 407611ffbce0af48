# slotbook/notifier/__main__.py
# python -m slotbook.notifier

import asyncio
import logging

import redis.asyncio as aioredis

from ..config import settings
from .consumer import notifications_consumer_loop, retry_consumer_loop

logger = logging.getLogger("slotbook.notifier")


async def main() -> None:
    r = aioredis.from_url(settings.redis_url, decode_responses=True)
    try:
        await asyncio.gather(
            notifications_consumer_loop(r),
            retry_consumer_loop(r),
        )
    finally:
        await r.aclose()


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Notifier stopped")
