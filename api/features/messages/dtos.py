"""DTOs for the Messages feature."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from api.features.messages.models import MessageModel, MessageReadModel
from api.shared.dtos import BaseDTO


class MessageReadDTO(BaseDTO):
    """Read receipt DTO."""

    message_id: int = Field(description="Message identifier")
    user_id: int = Field(description="Reader user identifier")
    read_at: datetime = Field(description="When the message was first read")

    @classmethod
    def from_model(cls, model: MessageReadModel) -> "MessageReadDTO":
        return cls(message_id=model.message_id, user_id=model.user_id, read_at=model.read_at)


class MessageDTO(BaseDTO):
    """Message DTO."""

    id: int = Field(description="Message identifier, usable as a poll cursor")
    conversation_id: int = Field(description="Conversation identifier")
    sender_id: int = Field(description="Sender user identifier")
    body: str = Field(description="Message body")
    attachments: List[Dict[str, Any]] = Field(default_factory=list, description="Opaque attachment metadata")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")
    reads: List[MessageReadDTO] = Field(default_factory=list, description="Read receipts")

    @classmethod
    def from_model(cls, model: MessageModel) -> "MessageDTO":
        return cls(
            id=model.id,
            conversation_id=model.conversation_id,
            sender_id=model.sender_id,
            body=model.body,
            attachments=model.attachments,
            created_at=model.created_at,
            updated_at=model.updated_at,
            reads=[MessageReadDTO.from_model(r) for r in model.reads],
        )


class SendMessageRequest(BaseDTO):
    """Send a message to a conversation."""

    body: str = Field(description="Message body")
    attachments: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Opaque attachment metadata"
    )


class MessagesResponse(BaseDTO):
    """Messages list response."""

    items: List[MessageDTO] = Field(description="Messages in chronological order")
    total: int = Field(description="Total messages returned")
