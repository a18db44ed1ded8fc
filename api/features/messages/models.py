"""Domain models for the Messages feature."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.features.messages.entities.message import (
    Message as MessageEntity,
    MessageRead as MessageReadEntity,
)


class MessageReadModel(BaseModel):
    """Domain model for a read receipt."""

    model_config = ConfigDict(from_attributes=True)

    message_id: int = Field(description="Message identifier")
    user_id: int = Field(description="Reader user identifier")
    read_at: datetime = Field(description="First time the user read the message")

    @classmethod
    def from_entity(cls, entity: MessageReadEntity) -> "MessageReadModel":
        return cls.model_validate(entity)


class MessageModel(BaseModel):
    """Domain model for Message."""

    id: int = Field(description="Global message id, also the poll cursor")
    conversation_id: int = Field(description="Conversation identifier")
    sender_id: int = Field(description="Sender user identifier")
    body: str = Field(description="Message body")
    attachments: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None)
    deleted_at: Optional[datetime] = Field(default=None)
    reads: List[MessageReadModel] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, entity: MessageEntity) -> "MessageModel":
        """Create model from database entity."""
        reads = (
            [MessageReadModel.from_entity(r) for r in entity.reads]
            if entity.is_loaded("reads")
            else []
        )
        return cls(
            id=entity.id,
            conversation_id=entity.conversation_id,
            sender_id=entity.sender_id,
            body=entity.body,
            attachments=entity.attachments or [],
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            deleted_at=entity.deleted_at,
            reads=reads,
        )

    def is_read_by(self, user_id: int) -> bool:
        return any(r.user_id == user_id for r in self.reads)
