from __future__ import annotations

from dependency_injector import containers, providers

from core.settings import SETTINGS
from infra.resources import CompletionClientResource, DatabaseResource


class InfrastructureContainer(containers.DeclarativeContainer):
    # Database
    database = providers.Resource(
        DatabaseResource,
        database_url=SETTINGS.DATABASE.DATABASE_URL,
        echo=SETTINGS.DATABASE.DB_ECHO,
    )

    # Completion provider (OpenAI-compatible)
    completion_client = providers.Resource(
        CompletionClientResource,
        api_key=SETTINGS.OPENAI.OPENAI_API_KEY.get_secret_value(),
        base_url=SETTINGS.OPENAI.OPENAI_BASE_URL,
        timeout=SETTINGS.OPENAI.OPENAI_TIMEOUT,
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Application services - depends on infrastructure."""

    infrastructure = providers.DependenciesContainer()

    # Services
    conversation_service = providers.Factory(
        "api.features.conversation.service.ConversationService",
    )

    message_relay = providers.Factory(
        "api.features.chat.relay.MessageRelay",
        completion_client=infrastructure.completion_client,
        conversation_service=conversation_service,
        database=infrastructure.database,
        chat_settings=SETTINGS.CHAT,
        chat_model=SETTINGS.OPENAI.OPENAI_CHAT_MODEL,
        vision_model=SETTINGS.OPENAI.OPENAI_VISION_MODEL,
    )


class ControllerContainer(containers.DeclarativeContainer):
    """Controller-specific dependencies."""

    services = providers.DependenciesContainer()

    # Controllers
    conversation_controller = providers.Factory(
        "api.features.conversation.controller.ConversationController",
        conversation_service=services.conversation_service,
    )

    chat_controller = providers.Factory(
        "api.features.chat.controller.ChatController",
        message_relay=services.message_relay,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Main application container composing all sub-containers."""

    wiring_config = containers.WiringConfiguration(
        modules=[
            "api.main",
            "api.shared.db",
            "api.features.conversation.router",
            "api.features.chat.router",
        ]
    )

    infrastructure = providers.Container(InfrastructureContainer)
    services = providers.Container(ServiceContainer, infrastructure=infrastructure)
    controllers = providers.Container(ControllerContainer, services=services)
