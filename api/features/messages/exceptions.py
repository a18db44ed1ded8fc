"""Exceptions for the Messages feature."""
from api.shared.exceptions import NotFoundError, ValidationError


class MessageNotFoundError(NotFoundError):
    """Raised when a message is missing or soft-deleted."""

    def __init__(self, message_id: int):
        super().__init__("Message", message_id)


class InvalidMessageBodyError(ValidationError):
    """Raised when a body is blank or longer than the configured maximum."""

    def __init__(self, reason: str, max_length: int):
        super().__init__(reason, {"max_length": max_length})
