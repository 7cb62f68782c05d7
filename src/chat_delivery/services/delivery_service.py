"""Scheduled message delivery.

One pass runs three steps in order:

* scan: a single cross-conversation query for due messages;
* plan: per message, the state flip, the conversation preview and the
  unread deltas (group membership is read lazily, once per group);
* commit: every planned write goes out in one atomic batch.

A failed pass leaves nothing applied; the due messages are still unsent and
are picked up again on the next pass.
"""
from __future__ import annotations

import logging
from datetime import datetime

from chat_delivery.application.dto.delivery import (
    DeliveryPlan,
    DeliveryReport,
    MarkSent,
    PreviewMerge,
    UnreadIncrement,
)
from chat_delivery.application.ports.clock import Clock, SystemClock
from chat_delivery.application.uow import UnitOfWork
from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.domain.entities.message import ScheduledMessage
from chat_delivery.domain.events.message_delivered import MessageDelivered
from chat_delivery.domain.value_objects.enums import ConversationKind

logger = logging.getLogger(__name__)

MESSAGE_DELIVERED_EVENT = "chat.message_delivered"


async def find_due_messages(now: datetime, uow: UnitOfWork) -> list[ScheduledMessage]:
    return await uow.messages.list_due(now)


async def plan_delivery(
    due: list[ScheduledMessage],
    now: datetime,
    uow: UnitOfWork,
) -> DeliveryPlan:
    """Build the writes for a set of due messages.

    Messages are planned oldest-scheduled first, so when several land in the
    same conversation the preview ends up showing the latest one. Messages
    with no owning conversation are skipped and reported, not raised.
    """
    plan = DeliveryPlan()
    conversations: dict[str, Conversation | None] = {}

    for msg in sorted(due, key=lambda m: (m.scheduled_time, m.id)):
        conversation_id = msg.conversation_id
        if not conversation_id:
            logger.warning("Scheduled message %s has no owning conversation, skipping", msg.id)
            plan.skipped.append(msg.id)
            continue
        if msg.conversation_kind not in (ConversationKind.DIRECT, ConversationKind.GROUP):
            logger.warning(
                "Scheduled message %s has unknown conversation kind %r, skipping",
                msg.id, msg.conversation_kind,
            )
            plan.skipped.append(msg.id)
            continue

        plan.mutations.append(MarkSent(message=msg, conversation_id=conversation_id))
        plan.mutations.append(
            PreviewMerge(
                conversation_id=conversation_id,
                kind=msg.conversation_kind,
                last_message=msg.text or "",
                last_message_time=now,
            )
        )

        deltas = await _unread_deltas(msg, conversation_id, uow, conversations)
        if deltas:
            plan.mutations.append(
                UnreadIncrement(
                    conversation_id=conversation_id,
                    kind=msg.conversation_kind,
                    deltas=deltas,
                )
            )

    return plan


async def _unread_deltas(
    msg: ScheduledMessage,
    conversation_id: str,
    uow: UnitOfWork,
    conversations: dict[str, Conversation | None],
) -> dict[str, int]:
    if msg.conversation_kind == ConversationKind.DIRECT:
        return _receiver_delta(msg)

    if conversation_id not in conversations:
        conversations[conversation_id] = await uow.conversations.get_by_id(conversation_id)
    conversation = conversations[conversation_id]

    if conversation is not None and conversation.kind == ConversationKind.DIRECT:
        logger.warning(
            "Scheduled message %s is tagged group but conversation %s is direct, counting receiver only",
            msg.id, conversation_id,
        )
        return _receiver_delta(msg)
    if conversation is None or not conversation.members:
        logger.debug("Group %s has no members, no unread counters to bump", conversation_id)
        return {}
    return {member: 1 for member in conversation.members if member != msg.sender_id}


def _receiver_delta(msg: ScheduledMessage) -> dict[str, int]:
    return {msg.receiver_id: 1} if msg.receiver_id else {}


async def commit_plan(plan: DeliveryPlan, now: datetime, uow: UnitOfWork) -> bool:
    """Stage every planned write and commit them as one batch.

    Returns False without touching the store when there is nothing to write.
    Raises CommitError if the batch is rejected.
    """
    if not plan.mutations:
        return False

    for mutation in plan.mutations:
        if isinstance(mutation, MarkSent):
            msg = mutation.message
            await uow.messages_w.mark_sent(msg.id, now)
            event = MessageDelivered(
                message_id=msg.id,
                conversation_id=mutation.conversation_id,
                sender_id=msg.sender_id,
                receiver_id=msg.receiver_id,
                text=msg.text or "",
                timestamp=now,
            )
            await uow.outbox.add(MESSAGE_DELIVERED_EVENT, event.to_payload())
        elif isinstance(mutation, PreviewMerge):
            await uow.conversations_w.merge_preview(
                mutation.conversation_id,
                mutation.kind,
                mutation.last_message,
                mutation.last_message_time,
            )
        elif isinstance(mutation, UnreadIncrement):
            await uow.conversations_w.increment_unread(
                mutation.conversation_id,
                mutation.kind,
                mutation.deltas,
            )

    await uow.commit()
    return True


async def process_scheduled_messages(
    uow: UnitOfWork,
    clock: Clock | None = None,
) -> DeliveryReport:
    now = (clock or SystemClock()).now()

    due = await find_due_messages(now, uow)
    if not due:
        logger.debug("No scheduled messages due at %s", now.isoformat())
        return DeliveryReport(due=0, delivered=0, skipped=0, conversations=0, committed=False)

    plan = await plan_delivery(due, now, uow)
    committed = await commit_plan(plan, now, uow)

    report = DeliveryReport(
        due=len(due),
        delivered=plan.delivered,
        skipped=len(plan.skipped),
        conversations=len(plan.conversation_ids),
        committed=committed,
    )
    logger.info(
        "Delivered %d/%d scheduled messages across %d conversations (%d skipped)",
        report.delivered, report.due, report.conversations, report.skipped,
    )
    return report
