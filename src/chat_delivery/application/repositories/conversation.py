from __future__ import annotations

from datetime import datetime
from typing import Protocol

from chat_delivery.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: str) -> Conversation | None: ...


class ConversationWriter(Protocol):
    async def merge_preview(
        self,
        conversation_id: str,
        kind: str,
        last_message: str,
        last_message_time: datetime,
    ) -> None:
        """Set the preview fields, creating the conversation if absent."""
        ...

    async def increment_unread(
        self,
        conversation_id: str,
        kind: str,
        deltas: dict[str, int],
    ) -> None:
        """Add deltas to unread counters without reading them first."""
        ...
