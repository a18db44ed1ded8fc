"""Exceptions for the Conversations feature."""
from api.shared.exceptions import NotFoundError, ValidationError


class ConversationNotFoundError(NotFoundError):
    """Raised when a conversation is missing or soft-deleted."""

    def __init__(self, conversation_id: int):
        super().__init__("Conversation", conversation_id)


class DirectMembershipError(ValidationError):
    """Raised when membership of a direct conversation would change."""

    def __init__(self, conversation_id: int, action: str):
        preposition = "from" if action == "remove" else "to"
        message = f"Cannot {action} participants {preposition} direct conversations"
        super().__init__(message, {"conversation_id": conversation_id, "action": action})


class ParticipantAlreadyExistsError(ValidationError):
    """Raised when the user is already a member of the conversation."""

    def __init__(self, conversation_id: int, user_id: int):
        super().__init__(
            "User is already a participant",
            {"conversation_id": conversation_id, "user_id": user_id},
        )
