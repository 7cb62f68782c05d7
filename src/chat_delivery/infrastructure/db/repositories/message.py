from __future__ import annotations

from datetime import datetime

from sqlalchemy import false, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import Executable

from chat_delivery.application.exceptions import StoreError
from chat_delivery.domain.entities.message import ScheduledMessage
from chat_delivery.domain.value_objects.enums import MessageStatus, MessageType
from chat_delivery.infrastructure.db.mappers import message as mapper
from chat_delivery.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession, *, lock_due_rows: bool = False) -> None:
        self._session = session
        self._lock_due_rows = lock_due_rows

    async def list_due(self, now: datetime) -> list[ScheduledMessage]:
        stmt = select(MessageModel).where(
            MessageModel.type == MessageType.SCHEDULED,
            MessageModel.sent == false(),
            MessageModel.scheduled_time <= now,
        )
        if self._lock_due_rows:
            # Overlapping runs see disjoint due sets until this transaction ends.
            stmt = stmt.with_for_update(skip_locked=True)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"due-message query failed: {exc}") from exc
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, batch: list[Executable]) -> None:
        self._batch = batch

    async def mark_sent(self, message_id: str, ts: datetime) -> None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id)
            .values(
                {
                    MessageModel.sent: True,
                    MessageModel.timestamp: ts,
                    MessageModel.status: MessageStatus.SENT.value,
                }
            )
        )
        self._batch.append(stmt)
