from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CustomSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


class AppSettings(CustomSettings):
    ENVIRONMENT: Literal["local", "dev", "prod", "test"] = Field(default="local")
    LOG_LEVEL: str = Field(default="INFO")
    JSON_LOGS: bool = Field(default=False)


class DbSettings(CustomSettings):
    """Relational store settings.

    ``DATABASE_URL`` has no default: the service refuses to start without it.
    Use an async driver, e.g. ``postgresql+asyncpg://...`` or
    ``sqlite+aiosqlite:///./chat.db``.
    """

    DATABASE_URL: str = Field(min_length=1)
    DB_ECHO: bool = Field(default=False)
    DB_AUTO_CREATE_SCHEMA: bool = Field(default=False)

    @field_validator("DATABASE_URL")
    @classmethod
    def normalize_driver(cls, v: str) -> str:
        # Plain postgres URLs (as handed out by most hosts) get the async driver
        if v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        if v.startswith("postgresql://"):
            v = "postgresql+asyncpg://" + v[len("postgresql://"):]
        return v


class OpenAISettings(CustomSettings):
    OPENAI_API_KEY: SecretStr
    OPENAI_BASE_URL: Optional[str] = Field(default=None)
    OPENAI_CHAT_MODEL: str = Field(default="gpt-4o")
    OPENAI_VISION_MODEL: str = Field(default="gpt-4o")
    OPENAI_TIMEOUT: float = Field(default=60.0)

    @field_validator("OPENAI_API_KEY")
    @classmethod
    def require_key(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("OPENAI_API_KEY must not be empty")
        return v


class ChatSettings(CustomSettings):
    """Generation parameters for the chat relay.

    Set via env vars (optional):
    - CHAT_TEMPERATURE
    - CHAT_TEXT_MAX_TOKENS
    - CHAT_IMAGE_MAX_TOKENS
    - CHAT_TITLE_MAX_LENGTH
    - CHAT_RESPONSE_LANGUAGE
    """

    TEMPERATURE: float = Field(default=0.7, alias="CHAT_TEMPERATURE")
    TEXT_MAX_TOKENS: int = Field(default=2000, alias="CHAT_TEXT_MAX_TOKENS")
    IMAGE_MAX_TOKENS: int = Field(default=1000, alias="CHAT_IMAGE_MAX_TOKENS")
    TITLE_MAX_LENGTH: int = Field(default=50, alias="CHAT_TITLE_MAX_LENGTH")
    RESPONSE_LANGUAGE: str = Field(
        default="Brazilian Portuguese", alias="CHAT_RESPONSE_LANGUAGE"
    )


class Settings(BaseModel):
    APP: AppSettings = Field(default_factory=AppSettings)
    DATABASE: DbSettings = Field(default_factory=DbSettings)
    OPENAI: OpenAISettings = Field(default_factory=OpenAISettings)
    CHAT: ChatSettings = Field(default_factory=ChatSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()


SETTINGS = get_settings()
