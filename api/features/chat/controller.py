"""Controller for the Chat feature."""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.chat.dtos import ChatRequest
from api.features.chat.relay import MessageRelay, PreparedTurn


class ChatController:
    """Controller for chat turns - orchestrates the relay phases."""

    def __init__(self, message_relay: MessageRelay):
        self.message_relay = message_relay

    async def prepare_turn(
        self, request: ChatRequest, *, db_session: AsyncSession
    ) -> PreparedTurn:
        return await self.message_relay.prepare_turn(request, db_session=db_session)

    def stream_turn(self, turn: PreparedTurn) -> AsyncIterator[str]:
        return self.message_relay.stream_turn(turn)
