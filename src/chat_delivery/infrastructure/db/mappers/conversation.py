from __future__ import annotations

from chat_delivery.domain.entities.conversation import Conversation
from chat_delivery.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        kind=model.kind,
        members=list(model.members) if model.members is not None else None,
        last_message=model.last_message,
        last_message_time=model.last_message_time,
        unread_counts=dict(model.unread_counts or {}),
    )


def entity_to_model(entity: Conversation) -> ConversationModel:
    return ConversationModel(
        id=entity.id,
        kind=entity.kind,
        members=entity.members,
        last_message=entity.last_message,
        last_message_time=entity.last_message_time,
        unread_counts=dict(entity.unread_counts),
    )
