from __future__ import annotations

from dependency_injector import containers, providers

from core.settings import SETTINGS
from infra.resources import DatabaseResource


class InfrastructureContainer(containers.DeclarativeContainer):
    chat_settings = providers.Object(SETTINGS.CHAT)

    # Database
    database = providers.Resource(
        DatabaseResource,
        database_url=str(SETTINGS.DATABASE.DATABASE_URL),
        auto_create_schema=SETTINGS.DATABASE.AUTO_CREATE_SCHEMA,
        server_settings={
            "lock_timeout": SETTINGS.DATABASE.POSTGRES_LOCK_TIMEOUT,
            "statement_timeout": SETTINGS.DATABASE.POSTGRES_STATEMENT_TIMEOUT,
        },
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    # Wakes long-poll waiters in this process after a send commits
    notifier = providers.Singleton(
        "api.features.polling.notifier.MessageNotifier",
    )

    # Services
    conversation_service = providers.Factory(
        "api.features.conversations.service.ConversationService",
    )

    message_service = providers.Factory(
        "api.features.messages.service.MessageService",
        settings=infrastructure.chat_settings,
        notifier=notifier,
    )

    poll_coordinator = providers.Singleton(
        "api.features.polling.service.PollCoordinator",
        database=infrastructure.database,
        message_service=message_service,
        notifier=notifier,
        settings=infrastructure.chat_settings,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    services = providers.DependenciesContainer()

    # Controllers
    conversation_controller = providers.Factory(
        "api.features.conversations.controller.ConversationController",
        conversation_service=services.conversation_service,
        message_service=services.message_service,
    )

    message_controller = providers.Factory(
        "api.features.messages.controller.MessageController",
        message_service=services.message_service,
        conversation_service=services.conversation_service,
    )

    poll_controller = providers.Factory(
        "api.features.polling.controller.PollController",
        poll_coordinator=services.poll_coordinator,
        conversation_service=services.conversation_service,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.shared.db",
            "api.features.conversations.router",
            "api.features.messages.router",
            "api.features.polling.router",
        ]
    )

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)
    controllers = providers.Container(ControllerContainer, services=services)
