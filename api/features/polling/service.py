"""Long-poll coordinator: bounded wait for messages past a cursor.

Each wait re-runs the cursor query until it returns rows or the timeout
elapses. Between checks the waiter suspends on the event loop, holding no
store connection, and a send committed by this process wakes it early.
"""
import time
from typing import Awaitable, Callable, Optional, Sequence

import structlog

from api.features.messages.service import MessageService
from api.features.polling.models import PollOutcome, PollResult
from api.features.polling.notifier import MessageNotifier
from api.shared.exceptions import ValidationError
from api.shared.utils import unique_ids
from core.settings import ChatSettings
from infra.resources import DatabaseResource

logger = structlog.get_logger("dbchat.polling.service")

DisconnectProbe = Callable[[], Awaitable[bool]]


class PollCoordinator:
    """Runs long-poll waits over the message cursor query."""

    def __init__(
        self,
        database: DatabaseResource,
        message_service: MessageService,
        notifier: MessageNotifier,
        settings: ChatSettings,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.database = database
        self.message_service = message_service
        self.notifier = notifier
        self.settings = settings
        self.clock = clock

    async def poll(
        self,
        conversation_ids: Sequence[int],
        after_message_id: int,
        *,
        timeout: Optional[float] = None,
        check_interval: Optional[int] = None,
        is_disconnected: Optional[DisconnectProbe] = None,
    ) -> PollResult:
        """Wait until a message newer than `after_message_id` exists.

        Args:
            conversation_ids: every conversation the caller belongs to; a new
                message in any of them ends the wait.
            after_message_id: the caller's cursor.
            timeout: ceiling for the whole wait, in seconds.
            check_interval: delay between store checks, in milliseconds.
            is_disconnected: optional probe checked before each suspension;
                when it reports True the wait ends with a CANCELLED result.

        Raises ValidationError for a non-positive timeout or a check interval
        below one millisecond. Store errors propagate to the caller unchanged.
        """
        timeout_s = self.settings.POLL_TIMEOUT if timeout is None else timeout
        interval_ms = (
            self.settings.POLL_CHECK_INTERVAL if check_interval is None else check_interval
        )
        if timeout_s <= 0:
            raise ValidationError("Poll timeout must be positive", {"timeout": timeout_s})
        if interval_ms < 1:
            raise ValidationError(
                "Poll check interval must be at least 1 ms",
                {"check_interval": interval_ms},
            )

        ids = unique_ids(conversation_ids)
        if not ids:
            return PollResult.empty(after_message_id)

        interval_s = interval_ms / 1000.0
        started = self.clock()
        checks = 0

        # Subscribe before the first query so no publish can slip between them
        with self.notifier.subscribe(ids) as waiter:
            while True:
                waiter.clear()
                checks += 1
                async with self.database.get_session() as session:
                    messages = await self.message_service.get_new_messages(
                        ids, after_message_id, db_session=session
                    )

                if messages:
                    logger.debug(
                        "Poll delivered messages",
                        after_message_id=after_message_id,
                        last_message_id=messages[-1].id,
                        count=len(messages),
                        checks=checks,
                    )
                    return PollResult(
                        last_message_id=messages[-1].id,
                        messages=messages,
                        outcome=PollOutcome.MESSAGES,
                    )

                elapsed = self.clock() - started
                if elapsed >= timeout_s:
                    logger.debug(
                        "Poll timed out",
                        after_message_id=after_message_id,
                        checks=checks,
                    )
                    return PollResult.empty(after_message_id)

                if is_disconnected is not None and await is_disconnected():
                    logger.info(
                        "Poll abandoned by client",
                        after_message_id=after_message_id,
                        checks=checks,
                    )
                    return PollResult.empty(after_message_id, PollOutcome.CANCELLED)

                await waiter.wait(min(interval_s, timeout_s - elapsed))
