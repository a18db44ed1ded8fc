"""Host-boundary authorization: only members may touch a conversation."""
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.service import ConversationService
from api.shared.exceptions import AuthorizationError


async def ensure_participant(
    conversation_service: ConversationService,
    conversation_id: int,
    user_id: int,
    *,
    db_session: AsyncSession,
) -> None:
    if not await conversation_service.is_participant(
        conversation_id, user_id, db_session=db_session
    ):
        raise AuthorizationError(
            "You are not a participant of this conversation.",
            {"conversation_id": conversation_id},
        )
