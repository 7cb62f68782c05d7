from __future__ import annotations

from enum import StrEnum


class ConversationKind(StrEnum):
    DIRECT = "direct"
    GROUP = "group"


class MessageType(StrEnum):
    NORMAL = "normal"
    SCHEDULED = "scheduled"


class MessageStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
