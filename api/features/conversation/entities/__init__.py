from api.features.conversation.entities.message import Message, MessageRole, MessageType
from api.features.conversation.entities.conversation import Conversation

__all__ = ["Conversation", "Message", "MessageRole", "MessageType"]
