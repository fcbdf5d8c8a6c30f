"""Conversation feature package: entities, repositories, service, controller and router.

Conversations and their ordered messages are stored through the SQLAlchemy
async ORM; the chat relay reads history and appends turns through the same
service.
"""
