"""Conversation entity."""
from typing import List, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from api.shared.entities.base import BaseEntity
from api.features.conversation.entities.message import Message


class Conversation(BaseEntity):
    """A titled, ordered thread of messages."""

    title: Mapped[Optional[str]] = mapped_column(String(500))

    messages: Mapped[List[Message]] = relationship(
        back_populates="conversation",
        order_by=Message.created_at,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )
