from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Conversation:
    id: str
    kind: str
    members: list[str] | None
    last_message: str | None
    last_message_time: datetime | None
    unread_counts: dict[str, int] = field(default_factory=dict)
