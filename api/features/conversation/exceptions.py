"""Exceptions for the Conversation feature."""
from api.shared.exceptions import NotFoundError


class ConversationNotFoundError(NotFoundError):
    """Raised when a conversation id does not exist."""

    def __init__(self, conversation_id: str):
        super().__init__("Conversation", conversation_id)
        self.error_code = "CONVERSATION_NOT_FOUND"
