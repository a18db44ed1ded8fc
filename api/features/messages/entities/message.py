"""Message and read-receipt entities."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import BigInteger, ForeignKey, Index, JSON, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.shared.entities.base import BaseEntity, UtcDateTime
from api.shared.utils import utcnow


class Message(BaseEntity):
    """A message in a conversation.

    The id is the global cursor: a single counter shared by every
    conversation, so "id > cursor" answers "anything new anywhere".
    """

    conversation_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("chat_conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    attachments: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime)

    reads: Mapped[List["MessageRead"]] = relationship(
        back_populates="message",
        cascade="all, delete-orphan",
        lazy="raise",
        order_by="MessageRead.id",
    )

    __table_args__ = (
        # Poll scan: WHERE conversation_id IN (...) AND id > :cursor
        Index("ix_chat_messages_conversation_id_id", "conversation_id", "id"),
        Index("ix_chat_messages_sender_id", "sender_id"),
    )


class MessageRead(BaseEntity):
    """Read receipt: user_id has seen message_id."""

    message_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("chat_messages.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    read_at: Mapped[datetime] = mapped_column(
        UtcDateTime, default=utcnow, nullable=False
    )

    message: Mapped[Message] = relationship(back_populates="reads", lazy="raise")

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_chat_message_reads_message_user"),
        Index("ix_chat_message_reads_message_id", "message_id"),
    )
