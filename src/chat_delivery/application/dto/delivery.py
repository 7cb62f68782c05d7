from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from chat_delivery.domain.entities.message import ScheduledMessage


@dataclass(frozen=True, slots=True)
class MarkSent:
    message: ScheduledMessage
    conversation_id: str


@dataclass(frozen=True, slots=True)
class PreviewMerge:
    conversation_id: str
    kind: str
    last_message: str
    last_message_time: datetime


@dataclass(frozen=True, slots=True)
class UnreadIncrement:
    conversation_id: str
    kind: str
    deltas: dict[str, int]


Mutation = MarkSent | PreviewMerge | UnreadIncrement


@dataclass(slots=True)
class DeliveryPlan:
    mutations: list[Mutation] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return sum(1 for m in self.mutations if isinstance(m, MarkSent))

    @property
    def conversation_ids(self) -> set[str]:
        return {m.conversation_id for m in self.mutations}


@dataclass(frozen=True, slots=True)
class DeliveryReport:
    due: int
    delivered: int
    skipped: int
    conversations: int
    committed: bool
