"""Conversation and participant entities."""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    Enum as SAEnum,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.shared.entities.base import BaseEntity, UtcDateTime
from api.shared.utils import utcnow


class ConversationKind(str, Enum):
    """Conversation kind; decides participant cardinality and mutability."""
    DIRECT = "direct"
    GROUP = "group"


class Conversation(BaseEntity):
    """A direct (two fixed members) or group (two or more, mutable) conversation."""

    kind: Mapped[ConversationKind] = mapped_column(
        SAEnum(
            ConversationKind,
            name="conversation_kind",
            native_enum=False,
            length=16,
            values_callable=lambda kinds: [k.value for k in kinds],
        ),
        nullable=False,
    )
    title: Mapped[Optional[str]] = mapped_column(String(255))

    # "<low>:<high>" user pair for direct conversations, NULL for groups
    direct_key: Mapped[Optional[str]] = mapped_column(String(64))

    deleted_at: Mapped[Optional[datetime]] = mapped_column(UtcDateTime)

    participants: Mapped[List["Participant"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        lazy="raise",
        order_by="Participant.id",
    )

    __table_args__ = (
        # One live direct conversation per pair; soft-deleted rows free the key
        Index(
            "uq_chat_conversations_direct_key",
            "direct_key",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("ix_chat_conversations_kind", "kind"),
    )

    @property
    def is_direct(self) -> bool:
        return self.kind == ConversationKind.DIRECT


class Participant(BaseEntity):
    """Membership of one user in one conversation."""

    conversation_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("chat_conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        UtcDateTime, default=utcnow, nullable=False
    )

    conversation: Mapped[Conversation] = relationship(
        back_populates="participants", lazy="raise"
    )

    __table_args__ = (
        UniqueConstraint(
            "conversation_id", "user_id", name="uq_chat_participants_conversation_user"
        ),
        Index("ix_chat_participants_user_conversation", "user_id", "conversation_id"),
    )
