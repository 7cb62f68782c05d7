"""Scheduled delivery worker: runs one delivery pass every DELIVERY_INTERVAL_SECONDS."""
from __future__ import annotations

import asyncio
import logging

from chat_delivery.application.dto.delivery import DeliveryReport
from chat_delivery.config import configure_logging, settings
from chat_delivery.infrastructure.db.session import AsyncSessionLocal, dispose_engine
from chat_delivery.infrastructure.db.uow import SqlAlchemyUoW
from chat_delivery.services import delivery_service

logger = logging.getLogger(__name__)


async def run_once() -> DeliveryReport:
    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUoW(session, lock_due_rows=settings.DELIVERY_LOCK_DUE_ROWS) as uow:
            return await delivery_service.process_scheduled_messages(uow)


async def run_delivery_worker() -> None:
    logger.info(
        "Scheduled delivery worker started (interval=%.1fs, lock_due_rows=%s)",
        settings.DELIVERY_INTERVAL_SECONDS,
        settings.DELIVERY_LOCK_DUE_ROWS,
    )
    try:
        while True:
            try:
                await run_once()
            except Exception:
                # Nothing from a failed pass was committed; the next pass retries it.
                logger.exception("Scheduled delivery pass failed")
            await asyncio.sleep(settings.DELIVERY_INTERVAL_SECONDS)
    finally:
        await dispose_engine()


def main() -> None:
    configure_logging()
    asyncio.run(run_delivery_worker())


if __name__ == "__main__":
    main()
