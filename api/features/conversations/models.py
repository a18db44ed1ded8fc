"""Domain models for the Conversations feature."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.features.conversations.entities.conversation import (
    Conversation as ConversationEntity,
    ConversationKind,
    Participant as ParticipantEntity,
)


class ParticipantModel(BaseModel):
    """Domain model for Participant."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Participant row identifier")
    conversation_id: int = Field(description="Conversation identifier")
    user_id: int = Field(description="Member user identifier")
    joined_at: datetime = Field(description="When the user joined")

    @classmethod
    def from_entity(cls, entity: ParticipantEntity) -> "ParticipantModel":
        return cls.model_validate(entity)


class ConversationModel(BaseModel):
    """Domain model for Conversation, with participants when they were loaded."""

    id: int = Field(description="Conversation identifier")
    kind: ConversationKind = Field(description="direct or group")
    title: Optional[str] = Field(default=None, description="Group title")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")
    participants: List[ParticipantModel] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, entity: ConversationEntity) -> "ConversationModel":
        """Create model from database entity."""
        participants = (
            [ParticipantModel.from_entity(p) for p in entity.participants]
            if entity.is_loaded("participants")
            else []
        )
        return cls(
            id=entity.id,
            kind=entity.kind,
            title=entity.title,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            participants=participants,
        )

    @property
    def participant_ids(self) -> List[int]:
        return [p.user_id for p in self.participants]

    def has_participant(self, user_id: int) -> bool:
        return user_id in self.participant_ids
