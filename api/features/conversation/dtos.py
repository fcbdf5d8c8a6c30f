"""DTOs for the Conversation feature."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from api.features.conversation.entities import Conversation, Message, MessageRole, MessageType
from api.shared.dtos import BaseDTO

DEFAULT_CONVERSATION_TITLE = "New Conversation"


class CreateConversationRequest(BaseDTO):
    """Request to create a conversation."""

    title: Optional[str] = Field(default=None, max_length=500, description="Conversation title")


class UpdateConversationRequest(BaseDTO):
    """Request to rename a conversation."""

    title: str = Field(..., min_length=1, max_length=500, description="New title")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()


class MessageDTO(BaseDTO):
    """Conversation message DTO."""

    id: str = Field(description="Message identifier")
    conversation_id: str = Field(description="Owning conversation identifier")
    role: MessageRole = Field(description="Message role: user, assistant or system")
    content: str = Field(description="Text, or image data URL for image messages")
    type: MessageType = Field(description="Message type")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Caption and file attributes")
    created_at: datetime = Field(description="Creation timestamp")

    @classmethod
    def from_entity(cls, entity: Message) -> "MessageDTO":
        return cls(
            id=entity.id,
            conversation_id=entity.conversation_id,
            role=entity.role,
            content=entity.content,
            type=entity.type,
            metadata=entity.message_metadata,
            created_at=entity.created_at,
        )


class ConversationDTO(BaseDTO):
    """Conversation with its full message sequence."""

    id: str = Field(description="Conversation identifier")
    title: Optional[str] = Field(default=None, description="Conversation title")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")
    messages: List[MessageDTO] = Field(default_factory=list, description="Messages in chronological order")
    message_count: int = Field(default=0, description="Number of messages")

    @classmethod
    def from_entity(cls, entity: Conversation, messages: List[Message]) -> "ConversationDTO":
        return cls(
            id=entity.id,
            title=entity.title,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            messages=[MessageDTO.from_entity(m) for m in messages],
            message_count=len(messages),
        )


class ConversationSummaryDTO(BaseDTO):
    """Conversation list entry: latest message and total count only."""

    id: str = Field(description="Conversation identifier")
    title: Optional[str] = Field(default=None, description="Conversation title")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")
    last_message: Optional[MessageDTO] = Field(default=None, description="Most recent message")
    message_count: int = Field(description="Number of messages")

    @classmethod
    def from_entity(
        cls, entity: Conversation, last_message: Optional[Message], message_count: int
    ) -> "ConversationSummaryDTO":
        return cls(
            id=entity.id,
            title=entity.title,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            last_message=MessageDTO.from_entity(last_message) if last_message else None,
            message_count=message_count,
        )


class DeleteConversationResponse(BaseDTO):
    """Acknowledgement for a deleted conversation."""

    success: bool = Field(default=True)
