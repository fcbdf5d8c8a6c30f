"""Controller for the Conversation feature."""
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversation.dtos import (
    DEFAULT_CONVERSATION_TITLE,
    ConversationDTO,
    ConversationSummaryDTO,
)
from api.features.conversation.service import ConversationService


class ConversationController:
    """Controller handling conversation CRUD operations."""

    def __init__(self, conversation_service: ConversationService):
        self.conversation_service = conversation_service

    async def list_conversations(
        self, *, db_session: AsyncSession
    ) -> List[ConversationSummaryDTO]:
        rows = await self.conversation_service.list_conversations(db_session=db_session)
        return [
            ConversationSummaryDTO.from_entity(conversation, last_message, count)
            for conversation, last_message, count in rows
        ]

    async def get_conversation(
        self, conversation_id: str, *, db_session: AsyncSession
    ) -> ConversationDTO:
        conversation, messages = await self.conversation_service.get_conversation(
            conversation_id, db_session=db_session
        )
        return ConversationDTO.from_entity(conversation, messages)

    async def create_conversation(
        self, *, title: Optional[str], db_session: AsyncSession
    ) -> ConversationDTO:
        conversation = await self.conversation_service.create_conversation(
            title or DEFAULT_CONVERSATION_TITLE, db_session=db_session
        )
        return ConversationDTO.from_entity(conversation, [])

    async def update_conversation(
        self, conversation_id: str, *, title: str, db_session: AsyncSession
    ) -> ConversationDTO:
        conversation, messages = await self.conversation_service.update_conversation(
            conversation_id, title, db_session=db_session
        )
        return ConversationDTO.from_entity(conversation, messages)

    async def delete_conversation(
        self, conversation_id: str, *, db_session: AsyncSession
    ) -> None:
        await self.conversation_service.delete_conversation(
            conversation_id, db_session=db_session
        )
