"""Shared test fixtures."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from chat_delivery.application.exceptions import CommitError, StoreError
from chat_delivery.application.ports.clock import FixedClock
from chat_delivery.application.repositories.outbox import OutboxRecord
from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.domain.entities.message import ScheduledMessage
from chat_delivery.domain.value_objects.enums import (
    ConversationKind,
    MessageStatus,
    MessageType,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


def make_conversation(
    *,
    conversation_id: str | None = None,
    kind: str = ConversationKind.DIRECT,
    members: list[str] | None = None,
    unread_counts: dict[str, int] | None = None,
) -> Conversation:
    return Conversation(
        id=conversation_id or uuid.uuid4().hex,
        kind=kind,
        members=members,
        last_message=None,
        last_message_time=None,
        unread_counts=dict(unread_counts or {}),
    )


def make_message(
    *,
    conversation: Conversation | None = None,
    conversation_id: str | None = None,
    conversation_kind: str | None = None,
    sender_id: str = "u1",
    receiver_id: str | None = None,
    text: str | None = "hello",
    type: str = MessageType.SCHEDULED,
    sent: bool = False,
    scheduled_time: datetime | None = NOW - timedelta(minutes=1),
    status: str = MessageStatus.PENDING,
) -> ScheduledMessage:
    if conversation is not None:
        conversation_id = conversation.id
        conversation_kind = conversation_kind or conversation.kind
    return ScheduledMessage(
        id=uuid.uuid4().hex,
        conversation_id=conversation_id,
        conversation_kind=conversation_kind or ConversationKind.DIRECT,
        text=text,
        sender_id=sender_id,
        receiver_id=receiver_id,
        type=type,
        sent=sent,
        scheduled_time=scheduled_time,
        status=status,
        timestamp=None,
    )


Write = Callable[[], None]


@dataclass
class InMemoryStore:
    messages: dict[str, ScheduledMessage] = field(default_factory=dict)
    conversations: dict[str, Conversation] = field(default_factory=dict)
    outbox: list[dict[str, Any]] = field(default_factory=list)
    conversation_reads: list[str] = field(default_factory=list)

    def add(self, *items: ScheduledMessage | Conversation) -> None:
        for item in items:
            if isinstance(item, Conversation):
                self.conversations[item.id] = item
            else:
                self.messages[item.id] = item


@dataclass
class FakeMessageReader:
    _store: InMemoryStore
    fail_with: Exception | None = None

    async def list_due(self, now: datetime) -> list[ScheduledMessage]:
        if self.fail_with is not None:
            raise self.fail_with
        return [
            m for m in self._store.messages.values()
            if m.type == MessageType.SCHEDULED
            and m.sent is False
            and m.scheduled_time is not None
            and m.scheduled_time <= now
        ]


@dataclass
class FakeMessageWriter:
    _store: InMemoryStore
    _stage: Callable[[Write], None]

    async def mark_sent(self, message_id: str, ts: datetime) -> None:
        def _apply() -> None:
            msg = self._store.messages[message_id]
            self._store.messages[message_id] = replace(
                msg, sent=True, timestamp=ts, status=MessageStatus.SENT,
            )

        self._stage(_apply)


@dataclass
class FakeConversationReader:
    _store: InMemoryStore
    fail_with: Exception | None = None

    async def get_by_id(self, conversation_id: str) -> Conversation | None:
        self._store.conversation_reads.append(conversation_id)
        if self.fail_with is not None:
            raise self.fail_with
        return self._store.conversations.get(conversation_id)


@dataclass
class FakeConversationWriter:
    _store: InMemoryStore
    _stage: Callable[[Write], None]

    def _get_or_create(self, conversation_id: str, kind: str) -> Conversation:
        existing = self._store.conversations.get(conversation_id)
        if existing is not None:
            return existing
        return make_conversation(conversation_id=conversation_id, kind=kind)

    async def merge_preview(
        self,
        conversation_id: str,
        kind: str,
        last_message: str,
        last_message_time: datetime,
    ) -> None:
        def _apply() -> None:
            conv = self._get_or_create(conversation_id, kind)
            self._store.conversations[conversation_id] = replace(
                conv, last_message=last_message, last_message_time=last_message_time,
            )

        self._stage(_apply)

    async def increment_unread(
        self,
        conversation_id: str,
        kind: str,
        deltas: dict[str, int],
    ) -> None:
        def _apply() -> None:
            conv = self._get_or_create(conversation_id, kind)
            counts = dict(conv.unread_counts)
            for user_id, delta in deltas.items():
                counts[user_id] = counts.get(user_id, 0) + delta
            self._store.conversations[conversation_id] = replace(conv, unread_counts=counts)

        self._stage(_apply)


@dataclass
class FakeOutbox:
    _store: InMemoryStore
    _stage: Callable[[Write], None]

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        def _apply() -> None:
            self._store.outbox.append({
                "id": len(self._store.outbox) + 1,
                "event_type": event_type,
                "payload": payload,
                "status": "pending",
                "attempts": 0,
                "next_retry_at": None,
            })

        self._stage(_apply)

    async def fetch_pending(self, batch_size: int, now: datetime) -> list[OutboxRecord]:
        ready = [
            r for r in self._store.outbox
            if r["status"] in ("pending", "failed")
            and (r["next_retry_at"] is None or r["next_retry_at"] <= now)
        ]
        return [
            OutboxRecord(id=r["id"], event_type=r["event_type"], payload=r["payload"], attempts=r["attempts"])
            for r in ready[:batch_size]
        ]

    def _record(self, record_id: int) -> dict[str, Any]:
        return next(r for r in self._store.outbox if r["id"] == record_id)

    async def mark_sent(self, ids: list[int]) -> None:
        def _apply() -> None:
            for record_id in ids:
                self._record(record_id)["status"] = "sent"

        self._stage(_apply)

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        def _apply() -> None:
            record = self._record(record_id)
            record["status"] = "failed"
            record["attempts"] += 1
            record["next_retry_at"] = next_retry_at

        self._stage(_apply)

    async def mark_dead(self, ids: list[int]) -> None:
        def _apply() -> None:
            for record_id in ids:
                self._record(record_id)["status"] = "dead"

        self._stage(_apply)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests: writes are staged and applied on commit only."""
    store: InMemoryStore = field(default_factory=InMemoryStore)
    fail_commit: bool = False
    commits: int = 0
    rollbacks: int = 0
    _staged: list[Write] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.messages = FakeMessageReader(self.store)
        self.messages_w = FakeMessageWriter(self.store, self._staged.append)
        self.conversations = FakeConversationReader(self.store)
        self.conversations_w = FakeConversationWriter(self.store, self._staged.append)
        self.outbox = FakeOutbox(self.store, self._staged.append)

    @property
    def staged(self) -> int:
        return len(self._staged)

    async def commit(self) -> None:
        staged = list(self._staged)
        self._staged.clear()
        if self.fail_commit:
            raise CommitError(f"batch of {len(staged)} writes rejected: injected failure")
        for apply in staged:
            apply()
        self.commits += 1

    async def rollback(self) -> None:
        self._staged.clear()
        self.rollbacks += 1


@pytest.fixture
def uow() -> FakeUoW:
    return FakeUoW()


@pytest.fixture
def store_error() -> StoreError:
    return StoreError("connection reset by peer")
