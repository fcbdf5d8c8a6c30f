"""Message relay: bridges one user turn to the completion provider.

A turn runs in two phases. ``prepare_turn`` runs inside the request before any
bytes are sent: it resolves or creates the conversation, persists the user
message and assembles the provider message list, so validation and lookup
failures still map to ordinary HTTP errors. ``stream_turn`` then relays tokens
as SSE frames and persists the assistant reply once the provider finishes.
"""
from __future__ import annotations

from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List

import structlog
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.features.chat.dtos import ChatRequest, ChunkEvent, DoneEvent, ErrorEvent
from api.features.chat.messages import build_provider_messages, current_turn_message
from api.features.chat.prompts import build_system_prompt
from api.features.conversation.entities import MessageRole, MessageType
from api.features.conversation.service import ConversationService
from api.shared.utils import describe_data_url, truncate_text
from core.settings import ChatSettings
from infra.resources import CompletionClientResource, DatabaseResource

logger = structlog.get_logger("chat.relay")

STREAM_ERROR_MESSAGE = "Failed to generate response"


@dataclass(frozen=True)
class PreparedTurn:
    conversation_id: str
    user_message_id: str
    messages: List[Dict[str, Any]]
    model: str
    max_tokens: int
    temperature: float


def format_sse_event(event: BaseModel) -> str:
    return f"data: {event.model_dump_json(by_alias=True)}\n\n"


class MessageRelay:
    """Runs a single turn; holds no state between turns."""

    def __init__(
        self,
        completion_client: CompletionClientResource,
        conversation_service: ConversationService,
        database: DatabaseResource,
        chat_settings: ChatSettings,
        chat_model: str,
        vision_model: str,
    ):
        self.completion_client = completion_client
        self.conversation_service = conversation_service
        self.database = database
        self.chat_settings = chat_settings
        self.chat_model = chat_model
        self.vision_model = vision_model

    async def prepare_turn(
        self, request: ChatRequest, *, db_session: AsyncSession
    ) -> PreparedTurn:
        """Resolve the conversation, persist the user message, build the prompt.

        Raises ``ConversationNotFoundError`` for an unknown conversation id
        before anything is written.
        """
        if request.conversation_id:
            conversation, history = await self.conversation_service.get_conversation(
                request.conversation_id, db_session=db_session
            )
        else:
            conversation = await self.conversation_service.create_conversation(
                truncate_text(request.message, self.chat_settings.TITLE_MAX_LENGTH),
                db_session=db_session,
            )
            history = []

        is_image = request.type == "image"
        if is_image:
            metadata = {"originalText": request.message}
            metadata.update(describe_data_url(request.image_data, request.file_name))
            user_message = await self.conversation_service.append_message(
                conversation.id,
                role=MessageRole.USER,
                content=request.image_data,
                message_type=MessageType.IMAGE,
                metadata=metadata,
                db_session=db_session,
            )
        else:
            user_message = await self.conversation_service.append_message(
                conversation.id,
                role=MessageRole.USER,
                content=request.message,
                db_session=db_session,
            )

        messages = build_provider_messages(
            build_system_prompt(self.chat_settings.RESPONSE_LANGUAGE),
            history,
            current_turn_message(request.message, request.image_data if is_image else None),
        )
        logger.info(
            "turn_prepared",
            conversation_id=conversation.id,
            turn_type=request.type,
            history=len(history),
            preview=truncate_text(request.message, 50),
        )
        return PreparedTurn(
            conversation_id=conversation.id,
            user_message_id=user_message.id,
            messages=messages,
            model=self.vision_model if is_image else self.chat_model,
            max_tokens=(
                self.chat_settings.IMAGE_MAX_TOKENS
                if is_image
                else self.chat_settings.TEXT_MAX_TOKENS
            ),
            temperature=self.chat_settings.TEMPERATURE,
        )

    async def stream_turn(self, turn: PreparedTurn) -> AsyncIterator[str]:
        """Relay provider tokens as SSE frames, then persist and signal ``done``.

        Any failure yields a single ``error`` frame and ends the stream without
        an assistant message. If the consumer goes away the generator is closed
        and the provider stream is closed with it; nothing is persisted.
        """
        chunks: List[str] = []
        try:
            async with aclosing(
                self.completion_client.stream_completion(
                    turn.messages,
                    model=turn.model,
                    max_tokens=turn.max_tokens,
                    temperature=turn.temperature,
                )
            ) as tokens:
                async for token in tokens:
                    chunks.append(token)
                    yield format_sse_event(
                        ChunkEvent(content=token, conversation_id=turn.conversation_id)
                    )

            async with self.database.get_session() as session:
                await self.conversation_service.append_message(
                    turn.conversation_id,
                    role=MessageRole.ASSISTANT,
                    content="".join(chunks),
                    db_session=session,
                )
        except Exception:
            logger.exception(
                "turn_failed",
                conversation_id=turn.conversation_id,
                chunks=len(chunks),
            )
            yield format_sse_event(ErrorEvent(error=STREAM_ERROR_MESSAGE))
            return

        logger.info(
            "turn_completed",
            conversation_id=turn.conversation_id,
            model=turn.model,
            chunks=len(chunks),
        )
        yield format_sse_event(
            DoneEvent(
                conversation_id=turn.conversation_id,
                message_id=turn.user_message_id,
            )
        )
