"""Outbox worker: publishes delivery events recorded alongside each batch."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

import redis.asyncio as aioredis

from chat_delivery.application.ports.bus import EventPublisher
from chat_delivery.application.ports.clock import Clock, SystemClock
from chat_delivery.application.uow import UnitOfWork
from chat_delivery.config import configure_logging, settings
from chat_delivery.infrastructure.bus.redis_pubsub import RedisPubSubPublisher
from chat_delivery.infrastructure.db.session import AsyncSessionLocal, dispose_engine
from chat_delivery.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

BASE_DELAY_SECONDS = 5
MAX_DELAY_SECONDS = 300


def calc_backoff(attempts: int, now: datetime) -> datetime:
    delay = min(BASE_DELAY_SECONDS * (2 ** attempts), MAX_DELAY_SECONDS)
    return now + timedelta(seconds=delay)


async def run_outbox_worker() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    publisher = RedisPubSubPublisher(redis)

    logger.info(
        "Outbox worker started (poll=%.1fs, batch=%d, max_attempts=%d)",
        settings.OUTBOX_POLL_INTERVAL,
        settings.OUTBOX_BATCH_SIZE,
        settings.OUTBOX_MAX_ATTEMPTS,
    )

    try:
        while True:
            try:
                async with AsyncSessionLocal() as session:
                    await process_batch(SqlAlchemyUoW(session), publisher)
            except Exception:
                logger.exception("Outbox worker loop error")
            await asyncio.sleep(settings.OUTBOX_POLL_INTERVAL)
    finally:
        await redis.aclose()
        await dispose_engine()


async def process_batch(
    uow: UnitOfWork,
    publisher: EventPublisher,
    *,
    batch_size: int | None = None,
    max_attempts: int | None = None,
    clock: Clock | None = None,
) -> int:
    """Publish one batch of pending records. Returns how many were published."""
    batch_size = batch_size or settings.OUTBOX_BATCH_SIZE
    max_attempts = max_attempts or settings.OUTBOX_MAX_ATTEMPTS
    now = (clock or SystemClock()).now()

    batch = await uow.outbox.fetch_pending(batch_size, now)
    if not batch:
        return 0

    sent_ids: list[int] = []
    dead_ids: list[int] = []
    for record in batch:
        if record.attempts >= max_attempts:
            logger.warning("Outbox record %d exceeded max attempts, marking dead", record.id)
            dead_ids.append(record.id)
            continue
        try:
            await publisher.publish(settings.REDIS_PUBSUB_CHANNEL, record.event_type, record.payload)
            sent_ids.append(record.id)
        except Exception:
            logger.exception("Failed to publish outbox record %d", record.id)
            await uow.outbox.mark_failed(record.id, calc_backoff(record.attempts, now))

    await uow.outbox.mark_sent(sent_ids)
    await uow.outbox.mark_dead(dead_ids)
    await uow.commit()
    if sent_ids:
        logger.info("Published %d outbox records", len(sent_ids))
    return len(sent_ids)


def main() -> None:
    configure_logging()
    asyncio.run(run_outbox_worker())


if __name__ == "__main__":
    main()
