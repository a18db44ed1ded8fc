"""Repositories for messages and read receipts."""
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, select, text
from sqlalchemy.orm import selectinload

from api.features.messages.entities.message import Message, MessageRead
from api.shared.base import BaseRepository

# Arbitrary constant naming the transaction-scoped lock that serializes sends
MESSAGE_ALLOCATION_LOCK = 7_310_245


class MessageRepository(BaseRepository[Message]):
    """Repository for message entities and the cursor queries built on them."""

    model = Message

    async def lock_allocation(self) -> None:
        """Hold the send lock until commit so id order equals commit order.

        A poller whose cursor moved past a larger id must never see a smaller
        one commit afterwards. SQLite serializes writers on its own.
        """
        if self.session.get_bind().dialect.name == "postgresql":
            await self.session.execute(
                text("SELECT pg_advisory_xact_lock(:key)"),
                {"key": MESSAGE_ALLOCATION_LOCK},
            )

    async def get_active(self, message_id: int) -> Optional[Message]:
        """Get a message unless it is missing or soft-deleted."""
        stmt = (
            select(Message)
            .where(Message.id == message_id, Message.deleted_at.is_(None))
            .options(selectinload(Message.reads))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def after(
        self,
        conversation_ids: Sequence[int],
        after_message_id: int,
        limit: Optional[int] = None,
    ) -> List[Message]:
        """Live messages newer than the cursor in any of the conversations, ascending."""
        stmt = (
            select(Message)
            .where(
                Message.conversation_id.in_(conversation_ids),
                Message.id > after_message_id,
                Message.deleted_at.is_(None),
            )
            .order_by(Message.id.asc())
            .options(selectinload(Message.reads))
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def page_before(
        self,
        conversation_id: int,
        before_message_id: Optional[int],
        limit: int,
    ) -> List[Message]:
        """The newest `limit` live messages below the cursor, ascending."""
        stmt = select(Message).where(
            Message.conversation_id == conversation_id,
            Message.deleted_at.is_(None),
        )
        if before_message_id is not None:
            stmt = stmt.where(Message.id < before_message_id)
        stmt = (
            stmt.order_by(Message.id.desc())
            .limit(limit)
            .options(selectinload(Message.reads))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(reversed(result.scalars().all()))

    async def max_id(self, conversation_ids: Sequence[int]) -> int:
        stmt = select(func.max(Message.id)).where(
            Message.conversation_id.in_(conversation_ids),
            Message.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)

    async def latest_by_conversation(
        self, conversation_ids: Sequence[int]
    ) -> Dict[int, Message]:
        """Newest live message of each conversation, in one round trip."""
        newest_ids = (
            select(func.max(Message.id))
            .where(
                Message.conversation_id.in_(conversation_ids),
                Message.deleted_at.is_(None),
            )
            .group_by(Message.conversation_id)
        )
        stmt = (
            select(Message)
            .where(Message.id.in_(newest_ids))
            .options(selectinload(Message.reads))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return {message.conversation_id: message for message in result.scalars().all()}


class MessageReadRepository(BaseRepository[MessageRead]):
    """Repository for read receipts."""

    model = MessageRead

    async def get_for(self, message_id: int, user_id: int) -> Optional[MessageRead]:
        entities = await self.get_by_fields(message_id=message_id, user_id=user_id)
        return entities[0] if entities else None
