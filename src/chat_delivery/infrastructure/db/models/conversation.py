from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chat_delivery.infrastructure.db.base import Base


class ConversationModel(Base):
    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False, default="direct")
    members: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    last_message: Mapped[str | None] = mapped_column("lastMessage", Text, nullable=True)
    last_message_time: Mapped[datetime | None] = mapped_column(
        "lastMessageTime", TIMESTAMP(timezone=True), nullable=True,
    )
    unread_counts: Mapped[dict[str, int]] = mapped_column(
        "unreadCounts",
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    messages = relationship("MessageModel", back_populates="conversation", lazy="noload")
