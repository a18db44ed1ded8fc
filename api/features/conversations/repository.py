"""Repositories for conversations and their participants."""
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from api.features.conversations.entities.conversation import (
    Conversation,
    ConversationKind,
    Participant,
)
from api.features.messages.entities.message import Message
from api.shared.base import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation entities with membership-aware queries."""

    model = Conversation

    async def get_active(
        self, conversation_id: int, *, with_participants: bool = False
    ) -> Optional[Conversation]:
        """Get a conversation unless it is missing or soft-deleted."""
        stmt = select(Conversation).where(
            Conversation.id == conversation_id,
            Conversation.deleted_at.is_(None),
        )
        if with_participants:
            stmt = stmt.options(selectinload(Conversation.participants)).execution_options(
                populate_existing=True
            )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_direct(self, direct_key: str) -> Optional[Conversation]:
        """Find the live direct conversation for a normalized user pair."""
        stmt = (
            select(Conversation)
            .where(
                Conversation.kind == ConversationKind.DIRECT,
                Conversation.direct_key == direct_key,
                Conversation.deleted_at.is_(None),
            )
            .options(selectinload(Conversation.participants))
            .execution_options(populate_existing=True)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: int) -> List[Conversation]:
        """Conversations the user belongs to, most recently active first.

        Activity is the newest live message's time, or the conversation's own
        creation time while it has no messages.
        """
        last_message_at = (
            select(
                Message.conversation_id.label("conversation_id"),
                func.max(Message.created_at).label("last_message_at"),
            )
            .where(Message.deleted_at.is_(None))
            .group_by(Message.conversation_id)
            .subquery()
        )
        member_of = select(Participant.conversation_id).where(
            Participant.user_id == user_id
        )
        activity = func.coalesce(last_message_at.c.last_message_at, Conversation.created_at)
        stmt = (
            select(Conversation)
            .outerjoin(
                last_message_at, last_message_at.c.conversation_id == Conversation.id
            )
            .where(
                Conversation.id.in_(member_of),
                Conversation.deleted_at.is_(None),
            )
            .order_by(activity.desc(), Conversation.id.desc())
            .options(selectinload(Conversation.participants))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def ids_for_user(self, user_id: int) -> List[int]:
        """Ids of the live conversations the user belongs to."""
        stmt = (
            select(Participant.conversation_id)
            .join(Conversation, Conversation.id == Participant.conversation_id)
            .where(
                Participant.user_id == user_id,
                Conversation.deleted_at.is_(None),
            )
            .order_by(Participant.conversation_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class ParticipantRepository(BaseRepository[Participant]):
    """Repository for membership rows."""

    model = Participant

    async def is_member(self, conversation_id: int, user_id: int) -> bool:
        return await self.exists(conversation_id=conversation_id, user_id=user_id)

    async def remove(self, conversation_id: int, user_id: int) -> bool:
        """Delete the membership row; returns whether one existed."""
        removed = await self.delete_by_fields(
            conversation_id=conversation_id, user_id=user_id
        )
        return removed > 0
