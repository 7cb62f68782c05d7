from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy import text as sql_text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chat_delivery.infrastructure.db.base import Base


class MessageModel(Base):
    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    # nullable: rows migrated from the nested chats/{id}/messages layout may have lost their parent
    conversation_id: Mapped[str | None] = mapped_column(
        "conversationId",
        String(128),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=True,
    )
    # copy of conversations.kind, written with the message and never changed afterwards
    conversation_kind: Mapped[str] = mapped_column(
        "conversationKind", String(20), nullable=False, default="direct",
    )
    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    sender_id: Mapped[str] = mapped_column("senderId", String(128), nullable=False)
    receiver_id: Mapped[str | None] = mapped_column("receiverId", String(128), nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="normal")
    sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=sql_text("false"))
    scheduled_time: Mapped[datetime | None] = mapped_column(
        "scheduledTime", TIMESTAMP(timezone=True), nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", server_default=sql_text("'pending'"),
    )
    timestamp: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    conversation = relationship("ConversationModel", back_populates="messages")

    __table_args__ = (
        Index(
            "ix_messages_due",
            scheduled_time,
            postgresql_where=sql_text("type = 'scheduled' AND sent = false"),
        ),
        Index("ix_messages_conversation", conversation_id),
    )
