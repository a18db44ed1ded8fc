"""Service layer for the Conversations feature.

Owns the conversation and membership lifecycle: idempotent direct
conversations, all-or-nothing creation, and group membership changes.
"""
from typing import Iterable, List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversations.entities.conversation import (
    Conversation,
    ConversationKind,
    Participant,
)
from api.features.conversations.exceptions import (
    ConversationNotFoundError,
    DirectMembershipError,
    ParticipantAlreadyExistsError,
)
from api.features.conversations.models import ConversationModel, ParticipantModel
from api.features.conversations.repository import (
    ConversationRepository,
    ParticipantRepository,
)
from api.shared.exceptions import ConflictError, ValidationError
from api.shared.utils import direct_pair_key, unique_ids, utcnow

logger = structlog.get_logger("dbchat.conversations.service")


class ConversationService:
    """Service for conversation and membership operations."""

    async def create_conversation(
        self,
        kind: str,
        participant_ids: Iterable[int],
        creator_id: int,
        title: Optional[str] = None,
        *,
        db_session: AsyncSession,
    ) -> ConversationModel:
        """Create a conversation, or return the existing one for a direct pair."""
        try:
            kind = ConversationKind(kind)
        except ValueError:
            raise ValidationError(
                'Type must be either "direct" or "group"', {"kind": str(kind)}
            ) from None

        user_ids = unique_ids(participant_ids)
        if creator_id not in user_ids:
            user_ids.append(creator_id)

        if kind == ConversationKind.DIRECT and len(user_ids) != 2:
            raise ValidationError(
                "Direct conversations must have exactly 2 participants",
                {"participants": user_ids},
            )
        if kind == ConversationKind.GROUP and len(user_ids) < 2:
            raise ValidationError(
                "Group conversations must have at least 2 participants",
                {"participants": user_ids},
            )

        repository = ConversationRepository(db_session)
        direct_key = None
        if kind == ConversationKind.DIRECT:
            direct_key = direct_pair_key(*user_ids)
            existing = await repository.find_direct(direct_key)
            if existing:
                logger.info(
                    "Direct conversation already exists",
                    conversation_id=existing.id,
                    direct_key=direct_key,
                )
                return ConversationModel.from_entity(existing)
            title = None
        elif title is not None:
            title = title.strip() or None

        now = utcnow()
        entity = Conversation(
            kind=kind,
            title=title,
            direct_key=direct_key,
            created_at=now,
            updated_at=now,
            participants=[Participant(user_id=uid, joined_at=now) for uid in user_ids],
        )
        try:
            await repository.create(entity)
            await db_session.commit()
        except IntegrityError:
            await db_session.rollback()
            if direct_key is None:
                logger.error("Failed to create conversation", kind=kind.value)
                raise
            # Lost the race on the pair's unique key; the winner is committed
            existing = await repository.find_direct(direct_key)
            if existing is None:
                raise ConflictError(
                    "Direct conversation could not be created",
                    {"direct_key": direct_key},
                )
            logger.info(
                "Direct conversation created concurrently",
                conversation_id=existing.id,
                direct_key=direct_key,
            )
            return ConversationModel.from_entity(existing)
        except Exception as e:
            await db_session.rollback()
            logger.error("Failed to create conversation", kind=kind.value, error=str(e))
            raise

        logger.info(
            "Conversation created",
            conversation_id=entity.id,
            kind=kind.value,
            participants=len(user_ids),
        )
        return ConversationModel.from_entity(entity)

    async def get_conversation(
        self, conversation_id: int, *, db_session: AsyncSession
    ) -> ConversationModel:
        """Get a live conversation with its participants."""
        repository = ConversationRepository(db_session)
        entity = await repository.get_active(conversation_id, with_participants=True)
        if not entity:
            raise ConversationNotFoundError(conversation_id)
        return ConversationModel.from_entity(entity)

    async def add_participant(
        self, conversation_id: int, user_id: int, *, db_session: AsyncSession
    ) -> ParticipantModel:
        """Add a member to a group conversation."""
        conversation = await self._get_active(conversation_id, db_session)
        if conversation.is_direct:
            raise DirectMembershipError(conversation_id, "add")

        participants = ParticipantRepository(db_session)
        if await participants.is_member(conversation_id, user_id):
            raise ParticipantAlreadyExistsError(conversation_id, user_id)

        try:
            entity = await participants.create(
                Participant(
                    conversation_id=conversation_id,
                    user_id=user_id,
                    joined_at=utcnow(),
                )
            )
            await db_session.commit()
        except IntegrityError as e:
            await db_session.rollback()
            raise ParticipantAlreadyExistsError(conversation_id, user_id) from e
        except Exception as e:
            await db_session.rollback()
            logger.error(
                "Failed to add participant",
                conversation_id=conversation_id,
                user_id=user_id,
                error=str(e),
            )
            raise

        logger.info("Participant added", conversation_id=conversation_id, user_id=user_id)
        return ParticipantModel.from_entity(entity)

    async def remove_participant(
        self, conversation_id: int, user_id: int, *, db_session: AsyncSession
    ) -> bool:
        """Remove a member from a group conversation; False if they were not one."""
        conversation = await self._get_active(conversation_id, db_session)
        if conversation.is_direct:
            raise DirectMembershipError(conversation_id, "remove")

        try:
            removed = await ParticipantRepository(db_session).remove(
                conversation_id, user_id
            )
            await db_session.commit()
        except Exception as e:
            await db_session.rollback()
            logger.error(
                "Failed to remove participant",
                conversation_id=conversation_id,
                user_id=user_id,
                error=str(e),
            )
            raise

        logger.info(
            "Participant removal processed",
            conversation_id=conversation_id,
            user_id=user_id,
            removed=removed,
        )
        return removed

    async def list_conversations_for_user(
        self, user_id: int, *, db_session: AsyncSession
    ) -> List[ConversationModel]:
        """Conversations the user participates in, most recently active first."""
        entities = await ConversationRepository(db_session).list_for_user(user_id)
        return [ConversationModel.from_entity(entity) for entity in entities]

    async def get_conversation_ids_for_user(
        self, user_id: int, *, db_session: AsyncSession
    ) -> List[int]:
        return await ConversationRepository(db_session).ids_for_user(user_id)

    async def is_participant(
        self, conversation_id: int, user_id: int, *, db_session: AsyncSession
    ) -> bool:
        """Membership check used by the host boundary to authorize callers."""
        return await ParticipantRepository(db_session).is_member(conversation_id, user_id)

    async def _get_active(
        self, conversation_id: int, db_session: AsyncSession
    ) -> Conversation:
        entity = await ConversationRepository(db_session).get_active(conversation_id)
        if not entity:
            raise ConversationNotFoundError(conversation_id)
        return entity
