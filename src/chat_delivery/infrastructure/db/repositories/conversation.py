from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Integer, String, func, literal
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import Executable

from chat_delivery.application.exceptions import StoreError
from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.infrastructure.db.mappers import conversation as mapper
from chat_delivery.infrastructure.db.models.conversation import ConversationModel


def incremented_counts(deltas: dict[str, int]) -> Any:
    """SQL expression adding ``deltas`` to the stored unreadCounts map.

    Evaluated by the database against the row being updated, so concurrent
    increments and read-receipt resets on other keys are never lost.
    """
    counts = ConversationModel.unread_counts
    expr = func.coalesce(counts, func.jsonb_build_object())
    for user_id, delta in sorted(deltas.items()):
        current = func.coalesce(counts[user_id].astext.cast(Integer), 0)
        expr = expr.op("||", return_type=JSONB)(
            func.jsonb_build_object(literal(user_id, String), current + delta)
        )
    return expr


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: str) -> Conversation | None:
        try:
            result = await self._session.get(ConversationModel, conversation_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"conversation {conversation_id} read failed: {exc}") from exc
        return mapper.model_to_entity(result) if result else None


class ConversationWriterRepo:
    def __init__(self, batch: list[Executable]) -> None:
        self._batch = batch

    async def merge_preview(
        self,
        conversation_id: str,
        kind: str,
        last_message: str,
        last_message_time: datetime,
    ) -> None:
        stmt = (
            pg_insert(ConversationModel)
            .values(
                {
                    ConversationModel.id: conversation_id,
                    ConversationModel.kind: kind,
                    ConversationModel.last_message: last_message,
                    ConversationModel.last_message_time: last_message_time,
                }
            )
            .on_conflict_do_update(
                index_elements=[ConversationModel.id],
                set_={
                    ConversationModel.last_message: last_message,
                    ConversationModel.last_message_time: last_message_time,
                },
            )
        )
        self._batch.append(stmt)

    async def increment_unread(
        self,
        conversation_id: str,
        kind: str,
        deltas: dict[str, int],
    ) -> None:
        if not deltas:
            return
        stmt = (
            pg_insert(ConversationModel)
            .values(
                {
                    ConversationModel.id: conversation_id,
                    ConversationModel.kind: kind,
                    ConversationModel.unread_counts: dict(deltas),
                }
            )
            .on_conflict_do_update(
                index_elements=[ConversationModel.id],
                set_={ConversationModel.unread_counts: incremented_counts(deltas)},
            )
        )
        self._batch.append(stmt)
