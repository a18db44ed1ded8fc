"""Controller for the Conversations feature."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.dtos import (
    AddParticipantRequest,
    ConversationDTO,
    ConversationListResponse,
    CreateConversationRequest,
    ParticipantDTO,
)
from api.features.conversations.guards import ensure_participant
from api.features.conversations.service import ConversationService
from api.features.messages.service import MessageService

logger = logging.getLogger("dbchat.conversations")


class ConversationController:
    """Controller handling conversation and membership requests."""

    def __init__(
        self,
        conversation_service: ConversationService,
        message_service: MessageService,
    ) -> None:
        self.conversation_service = conversation_service
        self.message_service = message_service

    async def list_conversations(
        self, *, user_id: int, db_session: AsyncSession
    ) -> ConversationListResponse:
        conversations = await self.conversation_service.list_conversations_for_user(
            user_id, db_session=db_session
        )
        latest = await self.message_service.get_latest_messages(
            [c.id for c in conversations], db_session=db_session
        )
        items = [ConversationDTO.from_model(c, latest.get(c.id)) for c in conversations]
        return ConversationListResponse(items=items, total=len(items))

    async def create_conversation(
        self,
        *,
        request: CreateConversationRequest,
        user_id: int,
        db_session: AsyncSession,
    ) -> ConversationDTO:
        conversation = await self.conversation_service.create_conversation(
            request.type,
            request.participants,
            user_id,
            request.title,
            db_session=db_session,
        )
        latest = await self.message_service.get_latest_messages(
            [conversation.id], db_session=db_session
        )
        return ConversationDTO.from_model(conversation, latest.get(conversation.id))

    async def get_conversation(
        self, *, conversation_id: int, user_id: int, db_session: AsyncSession
    ) -> ConversationDTO:
        await ensure_participant(
            self.conversation_service, conversation_id, user_id, db_session=db_session
        )
        conversation = await self.conversation_service.get_conversation(
            conversation_id, db_session=db_session
        )
        latest = await self.message_service.get_latest_messages(
            [conversation_id], db_session=db_session
        )
        return ConversationDTO.from_model(conversation, latest.get(conversation_id))

    async def add_participant(
        self,
        *,
        conversation_id: int,
        request: AddParticipantRequest,
        user_id: int,
        db_session: AsyncSession,
    ) -> ParticipantDTO:
        await ensure_participant(
            self.conversation_service, conversation_id, user_id, db_session=db_session
        )
        participant = await self.conversation_service.add_participant(
            conversation_id, request.user_id, db_session=db_session
        )
        logger.info(
            f"User {user_id} added user {request.user_id} to conversation {conversation_id}"
        )
        return ParticipantDTO.from_model(participant)

    async def remove_participant(
        self,
        *,
        conversation_id: int,
        member_id: int,
        user_id: int,
        db_session: AsyncSession,
    ) -> bool:
        await ensure_participant(
            self.conversation_service, conversation_id, user_id, db_session=db_session
        )
        return await self.conversation_service.remove_participant(
            conversation_id, member_id, db_session=db_session
        )
