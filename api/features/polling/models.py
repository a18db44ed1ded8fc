"""Domain models for the Polling feature."""
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from api.features.messages.models import MessageModel


class PollOutcome(str, Enum):
    """How a long-poll wait ended."""
    MESSAGES = "messages"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class PollResult(BaseModel):
    """Result of one long-poll wait.

    `last_message_id` is the cursor the caller should send next: the largest
    id returned, or the caller's own cursor when nothing arrived.
    """

    last_message_id: int = Field(description="Cursor for the next poll")
    messages: List[MessageModel] = Field(default_factory=list)
    outcome: PollOutcome = Field(description="Why the wait ended")

    @classmethod
    def empty(cls, after_message_id: int, outcome: PollOutcome = PollOutcome.TIMEOUT) -> "PollResult":
        return cls(last_message_id=after_message_id, messages=[], outcome=outcome)

    @property
    def has_messages(self) -> bool:
        return bool(self.messages)
