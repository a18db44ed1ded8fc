import asyncio
import time

import pytest
from sqlalchemy.exc import OperationalError

from api.features.messages.service import MessageService
from api.features.polling.models import PollOutcome
from api.features.polling.notifier import MessageNotifier
from api.shared.exceptions import ValidationError


async def _send_later(database, message_service, conversation_id, delay, body="late"):
    await asyncio.sleep(delay)
    async with database.get_session() as session:
        return await message_service.send(conversation_id, 2, body, db_session=session)


async def test_returns_immediately_when_messages_exist(
    poll_coordinator, message_service, db_session, direct_chat
):
    first = await message_service.send(direct_chat.id, 1, "one", db_session=db_session)
    second = await message_service.send(direct_chat.id, 2, "two", db_session=db_session)

    started = time.monotonic()
    result = await poll_coordinator.poll([direct_chat.id], 0)

    assert time.monotonic() - started < 0.5
    assert result.outcome == PollOutcome.MESSAGES
    assert [m.id for m in result.messages] == [first.id, second.id]
    assert result.last_message_id == second.id


async def test_times_out_with_the_callers_cursor(poll_coordinator, direct_chat):
    started = time.monotonic()
    result = await poll_coordinator.poll([direct_chat.id], 7, timeout=0.3)
    elapsed = time.monotonic() - started

    assert 0.3 <= elapsed < 1.0
    assert result.outcome == PollOutcome.TIMEOUT
    assert result.messages == []
    assert result.last_message_id == 7
    assert not result.has_messages


async def test_default_timeout_comes_from_settings(poll_coordinator, direct_chat):
    started = time.monotonic()
    result = await poll_coordinator.poll([direct_chat.id], 0)

    assert 1.0 <= time.monotonic() - started < 2.0
    assert result.outcome == PollOutcome.TIMEOUT


async def test_send_wakes_waiter_early(
    database, poll_coordinator, message_service, direct_chat
):
    started = time.monotonic()
    # Interval far longer than the send delay; only the wakeup can end it early
    poll = asyncio.create_task(
        poll_coordinator.poll([direct_chat.id], 0, timeout=3, check_interval=2000)
    )
    sent = await _send_later(database, message_service, direct_chat.id, 0.2)
    result = await poll

    assert time.monotonic() - started < 1.5
    assert result.outcome == PollOutcome.MESSAGES
    assert [m.id for m in result.messages] == [sent.id]
    assert result.last_message_id == sent.id


async def test_send_from_another_process_is_found_by_periodic_check(
    database, poll_coordinator, chat_settings, direct_chat
):
    # No notifier: behaves like a send committed by a different process
    remote_service = MessageService(chat_settings)

    started = time.monotonic()
    poll = asyncio.create_task(
        poll_coordinator.poll([direct_chat.id], 0, timeout=3, check_interval=100)
    )
    sent = await _send_later(database, remote_service, direct_chat.id, 0.3)
    result = await poll

    assert time.monotonic() - started < 1.5
    assert [m.id for m in result.messages] == [sent.id]


async def test_messages_in_other_conversations_do_not_end_the_wait(
    database, poll_coordinator, message_service, direct_chat, group_chat
):
    poll = asyncio.create_task(
        poll_coordinator.poll([direct_chat.id], 0, timeout=0.6, check_interval=100)
    )
    await _send_later(database, message_service, group_chat.id, 0.1)
    result = await poll

    assert result.outcome == PollOutcome.TIMEOUT
    assert result.messages == []


async def test_empty_conversation_set_returns_immediately(poll_coordinator):
    started = time.monotonic()
    result = await poll_coordinator.poll([], 3)

    assert time.monotonic() - started < 0.2
    assert result.outcome == PollOutcome.TIMEOUT
    assert result.last_message_id == 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"timeout": 0},
        {"timeout": -1},
        {"check_interval": 0},
        {"check_interval": -50},
        {"timeout": 1, "check_interval": 0.5},
    ],
)
async def test_rejects_non_positive_timing(poll_coordinator, notifier, direct_chat, kwargs):
    started = time.monotonic()
    with pytest.raises(ValidationError):
        await poll_coordinator.poll([direct_chat.id], 0, **kwargs)

    assert time.monotonic() - started < 0.2
    assert notifier.waiter_count == 0


async def test_rejects_bad_timing_even_without_conversations(poll_coordinator):
    with pytest.raises(ValidationError):
        await poll_coordinator.poll([], 0, check_interval=0)


async def test_disconnected_client_cancels_wait(poll_coordinator, notifier, direct_chat):
    checks = []

    async def is_disconnected():
        checks.append(True)
        return len(checks) >= 2

    started = time.monotonic()
    result = await poll_coordinator.poll(
        [direct_chat.id], 0, timeout=5, check_interval=50, is_disconnected=is_disconnected
    )

    assert time.monotonic() - started < 1.0
    assert result.outcome == PollOutcome.CANCELLED
    assert result.last_message_id == 0
    assert notifier.waiter_count == 0


async def test_store_errors_propagate(
    poll_coordinator, message_service, notifier, direct_chat, monkeypatch
):
    async def failing_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(message_service, "get_new_messages", failing_query)

    with pytest.raises(OperationalError):
        await poll_coordinator.poll([direct_chat.id], 0, timeout=0.2)
    assert notifier.waiter_count == 0


async def test_notifier_wakes_only_matching_waiters():
    notifier = MessageNotifier()

    with notifier.subscribe([1, 2]) as interested, notifier.subscribe([3]) as other:
        assert notifier.waiter_count == 2
        notifier.publish(2, 10)

        assert interested.woken
        assert not other.woken
        assert notifier.high_water_mark == 10

    assert notifier.waiter_count == 0


async def test_waiter_wait_reports_timeout_and_wakeup():
    notifier = MessageNotifier()

    with notifier.subscribe([1]) as waiter:
        assert await waiter.wait(0.05) is False

        asyncio.get_running_loop().call_later(0.05, notifier.publish, 1, 5)
        assert await waiter.wait(1) is True

        waiter.clear()
        assert not waiter.woken


async def test_high_water_mark_never_moves_backwards():
    notifier = MessageNotifier()

    notifier.publish(1, 9)
    notifier.publish(1, 4)

    assert notifier.high_water_mark == 9
