"""DTOs for the Polling feature."""
from typing import List

from pydantic import Field

from api.features.messages.dtos import MessageDTO
from api.features.polling.models import PollResult
from api.shared.dtos import BaseDTO


class PollResponse(BaseDTO):
    """Messages delivered by a long-poll."""

    last_message_id: int = Field(description="Cursor to send with the next poll")
    messages: List[MessageDTO] = Field(description="New messages, ascending by id")

    @classmethod
    def from_result(cls, result: PollResult) -> "PollResponse":
        return cls(
            last_message_id=result.last_message_id,
            messages=[MessageDTO.from_model(m) for m in result.messages],
        )
