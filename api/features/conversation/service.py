"""Service layer for the Conversation feature."""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.conversation.entities import Conversation, Message, MessageRole, MessageType
from api.features.conversation.exceptions import ConversationNotFoundError
from api.features.conversation.repository import ConversationRepository, MessageRepository
from api.shared.exceptions import DatabaseError

logger = logging.getLogger("chat.conversation.service")


async def _commit(db_session: AsyncSession) -> None:
    try:
        await db_session.commit()
    except SQLAlchemyError as e:
        await db_session.rollback()
        raise DatabaseError("Failed to commit transaction", {"reason": str(e)}) from e


class ConversationService:
    """Conversation and message persistence using the repository pattern."""

    async def list_conversations(
        self, *, db_session: AsyncSession
    ) -> List[Tuple[Conversation, Optional[Message], int]]:
        """All conversations, most recently updated first, with latest message and count."""
        conversations = await ConversationRepository(db_session).list_recent()
        messages = MessageRepository(db_session)
        counts = await messages.count_by_conversation()
        latest = await messages.latest_by_conversation()
        return [(c, latest.get(c.id), counts.get(c.id, 0)) for c in conversations]

    async def get_conversation(
        self, conversation_id: str, *, db_session: AsyncSession
    ) -> Tuple[Conversation, List[Message]]:
        """Get a conversation and its messages in chronological order."""
        entity = await ConversationRepository(db_session).get_with_messages(conversation_id)
        if entity is None:
            raise ConversationNotFoundError(conversation_id)
        return entity, list(entity.messages)

    async def create_conversation(
        self, title: Optional[str], *, db_session: AsyncSession
    ) -> Conversation:
        """Create an empty conversation."""
        entity = await ConversationRepository(db_session).create(Conversation(title=title))
        await _commit(db_session)
        logger.info(f"Conversation created: {entity.id}")
        return entity

    async def update_conversation(
        self, conversation_id: str, title: str, *, db_session: AsyncSession
    ) -> Tuple[Conversation, List[Message]]:
        """Rename a conversation."""
        repository = ConversationRepository(db_session)
        entity = await repository.get_by_id(conversation_id)
        if entity is None:
            raise ConversationNotFoundError(conversation_id)

        entity.title = title
        entity = await repository.update(entity)
        await _commit(db_session)

        messages = await MessageRepository(db_session).list_for_conversation(conversation_id)
        return entity, messages

    async def delete_conversation(
        self, conversation_id: str, *, db_session: AsyncSession
    ) -> None:
        """Delete a conversation and all of its messages."""
        repository = ConversationRepository(db_session)
        if not await repository.exists(conversation_id):
            raise ConversationNotFoundError(conversation_id)

        # Explicit child delete; not every backend enforces ON DELETE CASCADE
        removed = await MessageRepository(db_session).delete_by_field(
            "conversation_id", conversation_id
        )
        await repository.delete(conversation_id)
        await _commit(db_session)
        logger.info(f"Conversation deleted: {conversation_id} ({removed} messages)")

    async def append_message(
        self,
        conversation_id: str,
        *,
        role: MessageRole,
        content: str,
        message_type: MessageType = MessageType.TEXT,
        metadata: Optional[Dict[str, Any]] = None,
        db_session: AsyncSession,
    ) -> Message:
        """Append a message and bump the conversation's ``updated_at``."""
        entity = await MessageRepository(db_session).create(
            Message(
                conversation_id=conversation_id,
                role=role,
                content=content,
                type=message_type,
                message_metadata=metadata,
            )
        )
        await ConversationRepository(db_session).touch(conversation_id)
        await _commit(db_session)
        return entity
