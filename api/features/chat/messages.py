"""Provider message assembly.

Stored messages are mapped to a small tagged union before being rendered in
the chat-completions wire shape:

- ``TextContent``: plain role/content entry.
- ``TextWithImageContent``: a text part followed by an ``image_url`` part.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Union

from api.features.conversation.entities import Message, MessageRole, MessageType

DEFAULT_IMAGE_INSTRUCTION = "Analyze this image"


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class TextWithImageContent:
    text: str
    image_url: str


ProviderContent = Union[TextContent, TextWithImageContent]


@dataclass(frozen=True)
class ProviderMessage:
    role: str
    content: ProviderContent

    def to_provider(self) -> Dict[str, Any]:
        if isinstance(self.content, TextWithImageContent):
            return {
                "role": self.role,
                "content": [
                    {"type": "text", "text": self.content.text},
                    {"type": "image_url", "image_url": {"url": self.content.image_url}},
                ],
            }
        return {"role": self.role, "content": self.content.text}


def from_stored_message(message: Message) -> ProviderMessage:
    """Rebuild the provider entry for a persisted message."""
    role = MessageRole(message.role).value
    if message.type == MessageType.IMAGE and message.role == MessageRole.USER:
        caption = (message.message_metadata or {}).get("originalText") or DEFAULT_IMAGE_INSTRUCTION
        return ProviderMessage(role, TextWithImageContent(caption, message.content))
    return ProviderMessage(role, TextContent(message.content))


def current_turn_message(text: str, image_data: str | None = None) -> ProviderMessage:
    """Provider entry for the turn being submitted."""
    if image_data:
        return ProviderMessage(MessageRole.USER.value, TextWithImageContent(text, image_data))
    return ProviderMessage(MessageRole.USER.value, TextContent(text))


def build_provider_messages(
    system_prompt: str,
    history: Sequence[Message],
    current: ProviderMessage,
) -> List[Dict[str, Any]]:
    """System instruction, then history in order, then the current turn."""
    entries = [ProviderMessage(MessageRole.SYSTEM.value, TextContent(system_prompt))]
    entries.extend(from_stored_message(m) for m in history)
    entries.append(current)
    return [entry.to_provider() for entry in entries]
