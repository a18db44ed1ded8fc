"""In-process wakeups for long-poll waiters.

Sends committed by this process wake the waiters whose conversations they
touch; sends from other processes are found by the waiters' periodic checks.
"""
import asyncio
from contextlib import contextmanager
from typing import FrozenSet, Iterable, Iterator, Set

import structlog

logger = structlog.get_logger("dbchat.polling.notifier")


class Waiter:
    """One suspended long-poll, keyed on the union of its conversations."""

    __slots__ = ("conversation_ids", "_event")

    def __init__(self, conversation_ids: FrozenSet[int]):
        self.conversation_ids = conversation_ids
        self._event = asyncio.Event()

    def wake(self) -> None:
        self._event.set()

    def clear(self) -> None:
        self._event.clear()

    @property
    def woken(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: float) -> bool:
        """Suspend up to `timeout` seconds; True if woken before it elapsed."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False


class MessageNotifier:
    """Tracks the message watermark and wakes interested waiters on publish."""

    def __init__(self) -> None:
        self._waiters: Set[Waiter] = set()
        self._high_water_mark = 0

    @property
    def high_water_mark(self) -> int:
        """Largest message id published by this process."""
        return self._high_water_mark

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    def publish(self, conversation_id: int, message_id: int) -> None:
        """Announce a committed message. Must be called after the commit."""
        if message_id > self._high_water_mark:
            self._high_water_mark = message_id
        woken = 0
        for waiter in list(self._waiters):
            if conversation_id in waiter.conversation_ids:
                waiter.wake()
                woken += 1
        logger.debug(
            "Message published",
            conversation_id=conversation_id,
            message_id=message_id,
            woken=woken,
        )

    @contextmanager
    def subscribe(self, conversation_ids: Iterable[int]) -> Iterator[Waiter]:
        """Register a waiter for the duration of one long-poll."""
        waiter = Waiter(frozenset(conversation_ids))
        self._waiters.add(waiter)
        try:
            yield waiter
        finally:
            self._waiters.discard(waiter)
