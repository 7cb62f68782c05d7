"""Import all models so metadata.create_all() sees every table."""
from chat_delivery.infrastructure.db.models.conversation import ConversationModel
from chat_delivery.infrastructure.db.models.message import MessageModel
from chat_delivery.infrastructure.db.models.outbox import OutboxMessageModel

__all__ = [
    "ConversationModel",
    "MessageModel",
    "OutboxMessageModel",
]
