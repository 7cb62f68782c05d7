from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class MessageDelivered:
    message_id: str
    conversation_id: str
    sender_id: str
    receiver_id: str | None
    text: str
    timestamp: datetime

    def to_payload(self) -> dict[str, str | None]:
        return {
            "message_id": self.message_id,
            "conversation_id": self.conversation_id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }
