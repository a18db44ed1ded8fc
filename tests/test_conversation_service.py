import asyncio

import pytest

from api.features.conversations.entities.conversation import ConversationKind
from api.features.conversations.exceptions import (
    ConversationNotFoundError,
    DirectMembershipError,
    ParticipantAlreadyExistsError,
)
from api.features.conversations.repository import ConversationRepository
from api.shared.exceptions import ValidationError
from api.shared.utils import utcnow


async def test_direct_conversation_is_reused_for_the_same_pair(
    conversation_service, db_session
):
    first = await conversation_service.create_conversation(
        "direct", [2], 1, db_session=db_session
    )
    second = await conversation_service.create_conversation(
        "direct", [1], 2, db_session=db_session
    )

    assert first.kind == ConversationKind.DIRECT
    assert second.id == first.id
    assert sorted(first.participant_ids) == [1, 2]


async def test_direct_conversation_drops_title(conversation_service, db_session):
    conversation = await conversation_service.create_conversation(
        "direct", [2], 1, "ignored", db_session=db_session
    )

    assert conversation.title is None


async def test_group_includes_creator_and_strips_title(conversation_service, db_session):
    conversation = await conversation_service.create_conversation(
        "group", [2, 3, 3], 1, "  Weekend plans  ", db_session=db_session
    )

    assert conversation.kind == ConversationKind.GROUP
    assert conversation.title == "Weekend plans"
    assert sorted(conversation.participant_ids) == [1, 2, 3]


async def test_direct_with_three_members_is_rejected(conversation_service, db_session):
    with pytest.raises(ValidationError):
        await conversation_service.create_conversation(
            "direct", [1, 2, 3], 1, db_session=db_session
        )

    assert await conversation_service.get_conversation_ids_for_user(
        1, db_session=db_session
    ) == []


async def test_group_with_only_the_creator_is_rejected(conversation_service, db_session):
    with pytest.raises(ValidationError):
        await conversation_service.create_conversation(
            "group", [1], 1, db_session=db_session
        )


async def test_unknown_kind_is_rejected(conversation_service, db_session):
    with pytest.raises(ValidationError) as exc_info:
        await conversation_service.create_conversation(
            "channel", [2], 1, db_session=db_session
        )

    assert exc_info.value.message == 'Type must be either "direct" or "group"'


async def test_get_conversation_returns_participants(
    conversation_service, db_session, group_chat
):
    conversation = await conversation_service.get_conversation(
        group_chat.id, db_session=db_session
    )

    assert conversation.id == group_chat.id
    assert conversation.has_participant(3)
    assert not conversation.has_participant(4)


async def test_get_missing_conversation_raises(conversation_service, db_session):
    with pytest.raises(ConversationNotFoundError):
        await conversation_service.get_conversation(999, db_session=db_session)


async def test_add_and_remove_group_participant(
    conversation_service, db_session, group_chat
):
    participant = await conversation_service.add_participant(
        group_chat.id, 4, db_session=db_session
    )

    assert participant.user_id == 4
    assert await conversation_service.is_participant(group_chat.id, 4, db_session=db_session)

    removed = await conversation_service.remove_participant(
        group_chat.id, 4, db_session=db_session
    )

    assert removed is True
    assert not await conversation_service.is_participant(
        group_chat.id, 4, db_session=db_session
    )


async def test_adding_existing_member_fails(conversation_service, db_session, group_chat):
    with pytest.raises(ParticipantAlreadyExistsError):
        await conversation_service.add_participant(group_chat.id, 2, db_session=db_session)


async def test_removing_non_member_returns_false(
    conversation_service, db_session, group_chat
):
    removed = await conversation_service.remove_participant(
        group_chat.id, 42, db_session=db_session
    )

    assert removed is False


async def test_direct_membership_is_fixed(conversation_service, db_session, direct_chat):
    with pytest.raises(DirectMembershipError) as added:
        await conversation_service.add_participant(direct_chat.id, 3, db_session=db_session)
    with pytest.raises(DirectMembershipError) as removed:
        await conversation_service.remove_participant(
            direct_chat.id, 2, db_session=db_session
        )

    assert added.value.message == "Cannot add participants to direct conversations"
    assert removed.value.message == "Cannot remove participants from direct conversations"

    conversation = await conversation_service.get_conversation(
        direct_chat.id, db_session=db_session
    )
    assert sorted(conversation.participant_ids) == [1, 2]


async def test_list_orders_by_latest_activity(
    conversation_service, message_service, db_session
):
    older = await conversation_service.create_conversation(
        "direct", [2], 1, db_session=db_session
    )
    await asyncio.sleep(0.01)
    newer = await conversation_service.create_conversation(
        "direct", [3], 1, db_session=db_session
    )

    listed = await conversation_service.list_conversations_for_user(1, db_session=db_session)
    assert [c.id for c in listed] == [newer.id, older.id]

    await asyncio.sleep(0.01)
    await message_service.send(older.id, 2, "ping", db_session=db_session)

    listed = await conversation_service.list_conversations_for_user(1, db_session=db_session)
    assert [c.id for c in listed] == [older.id, newer.id]
    assert all(c.participants for c in listed)


async def test_list_only_includes_member_conversations(
    conversation_service, db_session, direct_chat, group_chat
):
    listed = await conversation_service.list_conversations_for_user(3, db_session=db_session)

    assert [c.id for c in listed] == [group_chat.id]
    assert await conversation_service.get_conversation_ids_for_user(
        2, db_session=db_session
    ) == sorted([direct_chat.id, group_chat.id])


async def test_concurrent_direct_creation_returns_the_winner(
    conversation_service, db_session, monkeypatch
):
    winner = await conversation_service.create_conversation(
        "direct", [2], 1, db_session=db_session
    )
    real_find_direct = ConversationRepository.find_direct
    calls = []

    async def find_direct_after_race(self, direct_key):
        calls.append(direct_key)
        if len(calls) == 1:
            # The lookup ran before the other request committed
            return None
        return await real_find_direct(self, direct_key)

    monkeypatch.setattr(ConversationRepository, "find_direct", find_direct_after_race)

    result = await conversation_service.create_conversation(
        "direct", [1], 2, db_session=db_session
    )

    assert result.id == winner.id
    assert calls == ["1:2", "1:2"]
    assert await conversation_service.get_conversation_ids_for_user(
        1, db_session=db_session
    ) == [winner.id]


async def test_direct_pair_can_start_over_after_soft_delete(
    conversation_service, db_session, direct_chat
):
    entity = await ConversationRepository(db_session).get_active(direct_chat.id)
    entity.deleted_at = utcnow()
    await db_session.commit()

    fresh = await conversation_service.create_conversation(
        "direct", [2], 1, db_session=db_session
    )
    again = await conversation_service.create_conversation(
        "direct", [1], 2, db_session=db_session
    )

    assert fresh.id != direct_chat.id
    assert again.id == fresh.id
    assert fresh.direct_key == direct_chat.direct_key
    assert await conversation_service.get_conversation_ids_for_user(
        1, db_session=db_session
    ) == [fresh.id]
