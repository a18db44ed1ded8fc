"""DTOs for the Conversations feature."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from api.features.conversations.models import ConversationModel, ParticipantModel
from api.features.messages.dtos import MessageDTO
from api.features.messages.models import MessageModel
from api.shared.dtos import BaseDTO


class CreateConversationRequest(BaseDTO):
    """Request to create a conversation."""

    type: str = Field(description="Conversation type: direct or group")
    participants: List[int] = Field(min_length=1, description="User ids to include")
    title: Optional[str] = Field(default=None, max_length=255, description="Group title")


class AddParticipantRequest(BaseDTO):
    """Request to add a member to a group conversation."""

    user_id: int = Field(ge=1, description="User identifier")


class ParticipantDTO(BaseDTO):
    """Participant DTO."""

    id: int = Field(description="Participant row identifier")
    conversation_id: int = Field(description="Conversation identifier")
    user_id: int = Field(description="User identifier")
    joined_at: datetime = Field(description="When the user joined")

    @classmethod
    def from_model(cls, model: ParticipantModel) -> "ParticipantDTO":
        return cls(
            id=model.id,
            conversation_id=model.conversation_id,
            user_id=model.user_id,
            joined_at=model.joined_at,
        )


class ConversationDTO(BaseDTO):
    """Conversation DTO."""

    id: int = Field(description="Conversation identifier")
    type: str = Field(description="Conversation type: direct or group")
    title: Optional[str] = Field(default=None, description="Group title")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")
    participants: List[ParticipantDTO] = Field(default_factory=list, description="Members")
    latest_message: Optional[MessageDTO] = Field(default=None, description="Newest message")

    @classmethod
    def from_model(
        cls,
        model: ConversationModel,
        latest_message: Optional[MessageModel] = None,
    ) -> "ConversationDTO":
        return cls(
            id=model.id,
            type=model.kind.value,
            title=model.title,
            created_at=model.created_at,
            updated_at=model.updated_at,
            participants=[ParticipantDTO.from_model(p) for p in model.participants],
            latest_message=MessageDTO.from_model(latest_message) if latest_message else None,
        )


class ConversationListResponse(BaseDTO):
    """List conversations response."""

    items: List[ConversationDTO] = Field(description="Conversations, most recently active first")
    total: int = Field(description="Total conversations returned")
