"""Repositories for conversation persistence operations."""
from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import aliased, selectinload

from api.features.conversation.entities import Conversation, Message
from api.shared.base import BaseRepository
from api.shared.entities.base import utcnow


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversations."""

    model = Conversation

    async def get_with_messages(self, conversation_id: str) -> Optional[Conversation]:
        """Get a conversation with its messages loaded in chronological order."""
        stmt = (
            select(Conversation)
            .options(selectinload(Conversation.messages))
            .where(Conversation.id == conversation_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_recent(self) -> List[Conversation]:
        """All conversations, most recently updated first."""
        entities, _ = await self.list(order_by="-updated_at")
        return entities

    async def touch(self, conversation_id: str) -> None:
        """Bump ``updated_at`` for recency ordering."""
        await self.session.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(updated_at=utcnow())
        )


class MessageRepository(BaseRepository[Message]):
    """Repository for messages."""

    model = Message

    async def list_for_conversation(self, conversation_id: str) -> List[Message]:
        """Messages of a conversation in chronological order."""
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_conversation(self) -> Dict[str, int]:
        """Message totals keyed by conversation id."""
        stmt = select(Message.conversation_id, func.count(Message.id)).group_by(
            Message.conversation_id
        )
        result = await self.session.execute(stmt)
        return {conversation_id: int(total) for conversation_id, total in result.all()}

    async def latest_by_conversation(self) -> Dict[str, Message]:
        """Most recent message of every conversation that has one."""
        ranked = select(
            Message,
            func.row_number()
            .over(
                partition_by=Message.conversation_id,
                order_by=Message.created_at.desc(),
            )
            .label("rn"),
        ).subquery()
        latest = aliased(Message, ranked)
        stmt = select(latest).where(ranked.c.rn == 1)
        result = await self.session.execute(stmt)
        return {message.conversation_id: message for message in result.scalars().all()}
