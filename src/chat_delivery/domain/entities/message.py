from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ScheduledMessage:
    id: str
    conversation_id: str | None
    conversation_kind: str
    text: str | None
    sender_id: str
    receiver_id: str | None
    type: str
    sent: bool
    scheduled_time: datetime | None
    status: str
    timestamp: datetime | None
