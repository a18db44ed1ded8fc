"""Controller for the Polling feature."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.service import ConversationService
from api.features.polling.models import PollResult
from api.features.polling.service import DisconnectProbe, PollCoordinator


class PollController:
    """Controller for the long-poll endpoint."""

    def __init__(
        self,
        poll_coordinator: PollCoordinator,
        conversation_service: ConversationService,
    ) -> None:
        self.poll_coordinator = poll_coordinator
        self.conversation_service = conversation_service

    async def poll(
        self,
        *,
        after_message_id: int,
        user_id: int,
        db_session: AsyncSession,
        is_disconnected: Optional[DisconnectProbe] = None,
    ) -> PollResult:
        """Wait for messages in any of the caller's conversations."""
        conversation_ids = await self.conversation_service.get_conversation_ids_for_user(
            user_id, db_session=db_session
        )
        # Release the request session's connection before the wait begins
        await db_session.close()

        return await self.poll_coordinator.poll(
            conversation_ids,
            after_message_id,
            is_disconnected=is_disconnected,
        )
