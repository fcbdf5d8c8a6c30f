from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UiSettings(BaseSettings):
    """Configuration for the Streamlit UI to reach API endpoints.

    Kept apart from ``core.settings`` so the UI starts without server secrets.

    Set via env vars:
    - API_BASE_URL
    - ENDPOINT_CHAT
    - ENDPOINT_CONVERSATIONS
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    API_BASE_URL: str = Field(default="http://localhost:8000")
    ENDPOINT_CHAT: str = Field(default="/api/v1/chat")
    ENDPOINT_CONVERSATIONS: str = Field(default="/api/v1/conversations")
    REQUEST_TIMEOUT: float = Field(default=60.0)
