from __future__ import annotations

from typing import Protocol

from chat_delivery.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from chat_delivery.application.repositories.message import MessageReader, MessageWriter
from chat_delivery.application.repositories.outbox import OutboxWriter


class UnitOfWork(Protocol):
    """One atomic batch: every staged write lands on commit, or none does."""

    conversations: ConversationReader
    conversations_w: ConversationWriter
    messages: MessageReader
    messages_w: MessageWriter
    outbox: OutboxWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
