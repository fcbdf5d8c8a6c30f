"""Entity registry to ensure SQLAlchemy loads all table metadata.

Import all entity modules here so Alembic and schema bootstrap can discover them.
"""
# Import base first to expose BaseEntity.metadata
from api.shared.entities.base import BaseEntity  # noqa: F401

# Feature: Conversation
from api.features.conversation.entities import Conversation, Message  # noqa: F401
