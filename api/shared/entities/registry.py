"""Entity registry to ensure SQLAlchemy loads all table metadata.

Import all entity modules here so Alembic autogenerate can discover them.
"""
# Import base first to expose BaseEntity.metadata
from api.shared.entities.base import BaseEntity  # noqa: F401

# Feature: Conversations
from api.features.conversations.entities.conversation import (  # noqa: F401
    Conversation,
    Participant,
)

# Feature: Messages
from api.features.messages.entities.message import Message, MessageRead  # noqa: F401
