import pytest

from api.features.conversations.service import ConversationService
from api.features.messages.service import MessageService
from api.features.polling.notifier import MessageNotifier
from api.features.polling.service import PollCoordinator
from core.settings import ChatSettings
from infra.resources import DatabaseResource


@pytest.fixture
def chat_settings() -> ChatSettings:
    return ChatSettings(
        POLL_TIMEOUT=1,
        POLL_CHECK_INTERVAL=100,
        MESSAGE_MAX_LENGTH=20,
        MESSAGE_PAGINATION_LIMIT=5,
        MESSAGE_PAGINATION_MAX=10,
    )


@pytest.fixture
async def database(tmp_path):
    resource = DatabaseResource(
        f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}", auto_create_schema=True
    )
    await resource.init()
    yield resource
    await resource.shutdown()


@pytest.fixture
async def db_session(database):
    async with database.get_session() as session:
        yield session


@pytest.fixture
def notifier() -> MessageNotifier:
    return MessageNotifier()


@pytest.fixture
def conversation_service() -> ConversationService:
    return ConversationService()


@pytest.fixture
def message_service(chat_settings, notifier) -> MessageService:
    return MessageService(chat_settings, notifier)


@pytest.fixture
def poll_coordinator(database, message_service, notifier, chat_settings) -> PollCoordinator:
    return PollCoordinator(database, message_service, notifier, chat_settings)


@pytest.fixture
async def direct_chat(conversation_service, db_session):
    """Direct conversation between users 1 and 2."""
    return await conversation_service.create_conversation(
        "direct", [2], 1, db_session=db_session
    )


@pytest.fixture
async def group_chat(conversation_service, db_session):
    """Group conversation of users 1, 2 and 3 created by user 1."""
    return await conversation_service.create_conversation(
        "group", [2, 3], 1, "Team", db_session=db_session
    )
