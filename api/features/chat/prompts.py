"""System prompt builder for the chat relay."""
from __future__ import annotations

SYSTEM_PROMPT = """You are an intelligent and helpful AI assistant. Guidelines:
- Always answer in {language}
- Be friendly, polite and professional
- Give clear, well-structured answers
- If you do not know something, say so honestly
- When analyzing images, be detailed and precise
- Keep the context of the conversation"""


def build_system_prompt(language: str) -> str:
    """Fixed response language and tone policy prepended to every turn."""
    return SYSTEM_PROMPT.format(language=language)
