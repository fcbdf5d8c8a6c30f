"""DTOs for the Chat feature: request body and stream frames."""
from typing import Literal, Optional

from pydantic import Field, model_validator

from api.shared.dtos import BaseDTO


class ChatRequest(BaseDTO):
    """One user turn."""

    message: str = Field(..., min_length=1, description="User text, or the caption of an image")
    conversation_id: Optional[str] = Field(default=None, description="Existing conversation to continue")
    type: Literal["text", "image"] = Field(default="text", description="Turn type")
    image_data: Optional[str] = Field(default=None, description="Image as a base64 data URL")
    file_name: Optional[str] = Field(default=None, max_length=255, description="Original image file name")

    @model_validator(mode="after")
    def require_image_data(self) -> "ChatRequest":
        if self.type == "image" and not self.image_data:
            raise ValueError("imageData is required when type is 'image'")
        return self


class ChunkEvent(BaseDTO):
    type: Literal["chunk"] = "chunk"
    content: str
    conversation_id: str


class DoneEvent(BaseDTO):
    type: Literal["done"] = "done"
    conversation_id: str
    message_id: str


class ErrorEvent(BaseDTO):
    type: Literal["error"] = "error"
    error: str
