"""Controller for the Messages feature."""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.guards import ensure_participant
from api.features.conversations.service import ConversationService
from api.features.messages.dtos import MessageDTO, MessagesResponse, SendMessageRequest
from api.features.messages.service import MessageService
from api.shared.exceptions import AuthorizationError

logger = logging.getLogger("dbchat.messages")


class MessageController:
    """Controller for message history, sending and read receipts."""

    def __init__(
        self,
        message_service: MessageService,
        conversation_service: ConversationService,
    ) -> None:
        self.message_service = message_service
        self.conversation_service = conversation_service

    async def list_messages(
        self,
        *,
        conversation_id: int,
        before_message_id: Optional[int],
        limit: Optional[int],
        user_id: int,
        db_session: AsyncSession,
    ) -> MessagesResponse:
        await ensure_participant(
            self.conversation_service, conversation_id, user_id, db_session=db_session
        )
        messages = await self.message_service.get_messages(
            conversation_id, before_message_id, limit, db_session=db_session
        )
        items = [MessageDTO.from_model(m) for m in messages]
        return MessagesResponse(items=items, total=len(items))

    async def send_message(
        self,
        *,
        conversation_id: int,
        request: SendMessageRequest,
        user_id: int,
        db_session: AsyncSession,
    ) -> MessageDTO:
        await ensure_participant(
            self.conversation_service, conversation_id, user_id, db_session=db_session
        )
        message = await self.message_service.send(
            conversation_id,
            user_id,
            request.body,
            request.attachments,
            db_session=db_session,
        )
        return MessageDTO.from_model(message)

    async def mark_as_read(
        self, *, message_id: int, user_id: int, db_session: AsyncSession
    ) -> None:
        message = await self.message_service.get_message(message_id, db_session=db_session)
        await ensure_participant(
            self.conversation_service,
            message.conversation_id,
            user_id,
            db_session=db_session,
        )
        await self.message_service.mark_as_read(message_id, user_id, db_session=db_session)

    async def delete_message(
        self, *, message_id: int, user_id: int, db_session: AsyncSession
    ) -> None:
        message = await self.message_service.get_message(message_id, db_session=db_session)
        if message.sender_id != user_id:
            raise AuthorizationError(
                "Only the sender can delete a message", {"message_id": message_id}
            )
        await self.message_service.delete_message(message_id, db_session=db_session)
        logger.info(f"Message {message_id} deleted by sender {user_id}")
