from __future__ import annotations

from datetime import datetime
from typing import Protocol

from chat_delivery.domain.entities.message import ScheduledMessage


class MessageReader(Protocol):
    async def list_due(self, now: datetime) -> list[ScheduledMessage]:
        """Scheduled, unsent messages with scheduled_time <= now, across all conversations."""
        ...


class MessageWriter(Protocol):
    async def mark_sent(self, message_id: str, ts: datetime) -> None: ...
