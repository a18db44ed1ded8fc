"""Service layer for the Messages feature.

Appends messages under the global id order, pages history, answers cursor
queries and records read receipts.
"""
from typing import Any, Dict, List, Optional, Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.exceptions import ConversationNotFoundError
from api.features.conversations.repository import ConversationRepository
from api.features.messages.entities.message import Message, MessageRead
from api.features.messages.exceptions import InvalidMessageBodyError, MessageNotFoundError
from api.features.messages.models import MessageModel, MessageReadModel
from api.features.messages.repository import MessageReadRepository, MessageRepository
from api.features.polling.notifier import MessageNotifier
from api.shared.exceptions import ValidationError
from api.shared.utils import is_blank, unique_ids, utcnow
from core.settings import ChatSettings

logger = structlog.get_logger("dbchat.messages.service")


class MessageService:
    """Service for message and read-receipt operations."""

    def __init__(
        self,
        settings: ChatSettings,
        notifier: Optional[MessageNotifier] = None,
    ):
        self.settings = settings
        self.notifier = notifier

    def validate_body(self, body: str) -> None:
        max_length = self.settings.MESSAGE_MAX_LENGTH
        if is_blank(body):
            raise InvalidMessageBodyError("Message body cannot be empty", max_length)
        if len(body) > max_length:
            raise InvalidMessageBodyError(
                f"Message body cannot exceed {max_length} characters", max_length
            )

    async def send(
        self,
        conversation_id: int,
        sender_id: int,
        body: str,
        attachments: Optional[List[Dict[str, Any]]] = None,
        *,
        db_session: AsyncSession,
    ) -> MessageModel:
        """Append a message and advance the watermark seen by every waiter."""
        self.validate_body(body)

        conversation = await ConversationRepository(db_session).get_active(conversation_id)
        if not conversation:
            raise ConversationNotFoundError(conversation_id)

        repository = MessageRepository(db_session)
        now = utcnow()
        try:
            await repository.lock_allocation()
            entity = await repository.create(
                Message(
                    conversation_id=conversation_id,
                    sender_id=sender_id,
                    body=body,
                    attachments=attachments or None,
                    created_at=now,
                    updated_at=now,
                    reads=[],
                )
            )
            await db_session.commit()
        except Exception as e:
            await db_session.rollback()
            logger.error(
                "Failed to send message",
                conversation_id=conversation_id,
                sender_id=sender_id,
                error=str(e),
            )
            raise

        if self.notifier is not None:
            self.notifier.publish(conversation_id, entity.id)

        logger.info(
            "Message sent",
            message_id=entity.id,
            conversation_id=conversation_id,
            sender_id=sender_id,
        )
        return MessageModel.from_entity(entity)

    async def get_message(
        self, message_id: int, *, db_session: AsyncSession
    ) -> MessageModel:
        entity = await MessageRepository(db_session).get_active(message_id)
        if not entity:
            raise MessageNotFoundError(message_id)
        return MessageModel.from_entity(entity)

    async def mark_as_read(
        self, message_id: int, user_id: int, *, db_session: AsyncSession
    ) -> MessageReadModel:
        """Record that user_id read message_id; repeat calls return the first record."""
        if not await MessageRepository(db_session).get_active(message_id):
            raise MessageNotFoundError(message_id)

        reads = MessageReadRepository(db_session)
        existing = await reads.get_for(message_id, user_id)
        if existing:
            return MessageReadModel.from_entity(existing)

        try:
            entity = await reads.create(
                MessageRead(message_id=message_id, user_id=user_id, read_at=utcnow())
            )
            await db_session.commit()
        except IntegrityError:
            # A concurrent mark for the same pair committed first
            await db_session.rollback()
            existing = await reads.get_for(message_id, user_id)
            if existing is None:
                raise
            return MessageReadModel.from_entity(existing)
        except Exception as e:
            await db_session.rollback()
            logger.error(
                "Failed to mark message as read",
                message_id=message_id,
                user_id=user_id,
                error=str(e),
            )
            raise

        logger.debug("Message marked as read", message_id=message_id, user_id=user_id)
        return MessageReadModel.from_entity(entity)

    async def get_messages(
        self,
        conversation_id: int,
        before_message_id: Optional[int] = None,
        limit: Optional[int] = None,
        *,
        db_session: AsyncSession,
    ) -> List[MessageModel]:
        """Most recent page of history below the cursor, oldest-first."""
        if limit is None:
            limit = self.settings.MESSAGE_PAGINATION_LIMIT
        if limit < 1:
            raise ValidationError("Limit must be at least 1", {"limit": limit})
        limit = min(limit, self.settings.MESSAGE_PAGINATION_MAX)

        if not await ConversationRepository(db_session).get_active(conversation_id):
            raise ConversationNotFoundError(conversation_id)

        entities = await MessageRepository(db_session).page_before(
            conversation_id, before_message_id, limit
        )
        return [MessageModel.from_entity(entity) for entity in entities]

    async def get_new_messages(
        self,
        conversation_ids: Sequence[int],
        after_message_id: int,
        limit: Optional[int] = None,
        *,
        db_session: AsyncSession,
    ) -> List[MessageModel]:
        """Messages past the cursor across all the conversations, ascending by id."""
        ids = unique_ids(conversation_ids)
        if not ids:
            return []
        entities = await MessageRepository(db_session).after(ids, after_message_id, limit)
        return [MessageModel.from_entity(entity) for entity in entities]

    async def get_last_message_id(
        self, conversation_ids: Sequence[int], *, db_session: AsyncSession
    ) -> int:
        """Largest message id across the conversations, 0 when there is none."""
        ids = unique_ids(conversation_ids)
        if not ids:
            return 0
        return await MessageRepository(db_session).max_id(ids)

    async def get_latest_messages(
        self, conversation_ids: Sequence[int], *, db_session: AsyncSession
    ) -> Dict[int, MessageModel]:
        """Newest live message per conversation, keyed by conversation id."""
        ids = unique_ids(conversation_ids)
        if not ids:
            return {}
        latest = await MessageRepository(db_session).latest_by_conversation(ids)
        return {cid: MessageModel.from_entity(m) for cid, m in latest.items()}

    async def delete_message(
        self, message_id: int, *, db_session: AsyncSession
    ) -> MessageModel:
        """Soft-delete a message; it disappears from history and polls."""
        repository = MessageRepository(db_session)
        entity = await repository.get_active(message_id)
        if not entity:
            raise MessageNotFoundError(message_id)

        try:
            now = utcnow()
            entity.deleted_at = now
            entity.updated_at = now
            await db_session.commit()
        except Exception as e:
            await db_session.rollback()
            logger.error("Failed to delete message", message_id=message_id, error=str(e))
            raise

        logger.info("Message deleted", message_id=message_id)
        return MessageModel.from_entity(entity)
