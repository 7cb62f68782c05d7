"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends

from chat_delivery.application.ports.clock import Clock, SystemClock
from chat_delivery.config import settings
from chat_delivery.infrastructure.db.session import AsyncSessionLocal
from chat_delivery.infrastructure.db.uow import SqlAlchemyUoW


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session, lock_due_rows=settings.DELIVERY_LOCK_DUE_ROWS)
        try:
            yield uow
        finally:
            await session.close()


def get_clock() -> Clock:
    return SystemClock()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]
ClockDep = Annotated[Clock, Depends(get_clock)]
