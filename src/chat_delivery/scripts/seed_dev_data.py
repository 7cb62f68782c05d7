"""Create the schema and seed direct + group conversations with scheduled messages."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

from chat_delivery.config import configure_logging
from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.domain.entities.message import ScheduledMessage
from chat_delivery.domain.value_objects.enums import ConversationKind, MessageStatus, MessageType
from chat_delivery.infrastructure.db.base import Base
from chat_delivery.infrastructure.db.mappers import conversation as conversation_mapper
from chat_delivery.infrastructure.db.mappers import message as message_mapper
from chat_delivery.infrastructure.db.models import ConversationModel  # noqa: F401  registers tables
from chat_delivery.infrastructure.db.session import AsyncSessionLocal, engine

logger = logging.getLogger(__name__)


def _scheduled(
    conversation: Conversation,
    sender_id: str,
    text: str,
    scheduled_time: datetime,
    receiver_id: str | None = None,
) -> ScheduledMessage:
    return ScheduledMessage(
        id=uuid.uuid4().hex,
        conversation_id=conversation.id,
        conversation_kind=conversation.kind,
        text=text,
        sender_id=sender_id,
        receiver_id=receiver_id,
        type=MessageType.SCHEDULED,
        sent=False,
        scheduled_time=scheduled_time,
        status=MessageStatus.PENDING,
        timestamp=None,
    )


async def seed() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    now = datetime.now(timezone.utc)
    direct = Conversation(
        id="u1_u2",
        kind=ConversationKind.DIRECT,
        members=None,
        last_message=None,
        last_message_time=None,
    )
    group = Conversation(
        id=f"group-{uuid.uuid4().hex[:8]}",
        kind=ConversationKind.GROUP,
        members=["a", "b", "c"],
        last_message=None,
        last_message_time=None,
    )
    messages = [
        _scheduled(direct, "u1", "hi", now - timedelta(minutes=1), receiver_id="u2"),
        _scheduled(direct, "u1", "see you tomorrow", now + timedelta(hours=12), receiver_id="u2"),
        _scheduled(group, "a", "yo", now - timedelta(seconds=30)),
        _scheduled(group, "b", "standup in 5", now + timedelta(minutes=5)),
    ]

    async with AsyncSessionLocal() as session:
        session.add_all([conversation_mapper.entity_to_model(direct), conversation_mapper.entity_to_model(group)])
        await session.flush()
        session.add_all([message_mapper.entity_to_model(m) for m in messages])
        await session.commit()

    logger.info(
        "Seeded conversations %s and %s with %d scheduled messages",
        direct.id, group.id, len(messages),
    )


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed())
