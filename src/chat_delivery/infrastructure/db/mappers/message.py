from __future__ import annotations

from chat_delivery.domain.entities.message import ScheduledMessage
from chat_delivery.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> ScheduledMessage:
    return ScheduledMessage(
        id=model.id,
        conversation_id=model.conversation_id,
        conversation_kind=model.conversation_kind,
        text=model.text,
        sender_id=model.sender_id,
        receiver_id=model.receiver_id,
        type=model.type,
        sent=model.sent,
        scheduled_time=model.scheduled_time,
        status=model.status,
        timestamp=model.timestamp,
    )


def entity_to_model(entity: ScheduledMessage) -> MessageModel:
    return MessageModel(
        id=entity.id,
        conversation_id=entity.conversation_id,
        conversation_kind=entity.conversation_kind,
        text=entity.text,
        sender_id=entity.sender_id,
        receiver_id=entity.receiver_id,
        type=entity.type,
        sent=entity.sent,
        scheduled_time=entity.scheduled_time,
        status=entity.status,
        timestamp=entity.timestamp,
    )
