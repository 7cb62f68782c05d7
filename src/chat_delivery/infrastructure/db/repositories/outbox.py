from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import Executable

from chat_delivery.application.repositories.outbox import OutboxRecord
from chat_delivery.infrastructure.db.models.outbox import OutboxMessageModel


class OutboxWriterRepo:
    def __init__(self, session: AsyncSession, batch: list[Executable]) -> None:
        self._session = session
        self._batch = batch

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        self._batch.append(
            insert(OutboxMessageModel).values(
                {OutboxMessageModel.event_type: event_type, OutboxMessageModel.payload: payload}
            )
        )

    async def fetch_pending(self, batch_size: int, now: datetime) -> list[OutboxRecord]:
        """Lock up to ``batch_size`` publishable records for this transaction."""
        stmt = (
            select(OutboxMessageModel)
            .where(
                OutboxMessageModel.status.in_(["pending", "failed"]),
                (
                    OutboxMessageModel.next_retry_at.is_(None)
                    | (OutboxMessageModel.next_retry_at <= now)
                ),
            )
            .order_by(OutboxMessageModel.created_at.asc(), OutboxMessageModel.id.asc())
            .limit(batch_size)
            .with_for_update(skip_locked=True)
        )
        result = await self._session.execute(stmt)
        return [
            OutboxRecord(
                id=r.id,
                event_type=r.event_type,
                payload=r.payload,
                attempts=r.attempts,
            )
            for r in result.scalars().all()
        ]

    async def mark_sent(self, ids: list[int]) -> None:
        if not ids:
            return
        self._batch.append(
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id.in_(ids))
            .values({OutboxMessageModel.status: "sent"})
        )

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        self._batch.append(
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id == record_id)
            .values(
                {
                    OutboxMessageModel.status: "failed",
                    OutboxMessageModel.attempts: OutboxMessageModel.attempts + 1,
                    OutboxMessageModel.next_retry_at: next_retry_at,
                }
            )
        )

    async def mark_dead(self, ids: list[int]) -> None:
        if not ids:
            return
        self._batch.append(
            update(OutboxMessageModel)
            .where(OutboxMessageModel.id.in_(ids))
            .values({OutboxMessageModel.status: "dead"})
        )
