"""Required configuration."""
import pytest
from pydantic import ValidationError

from core.settings import DbSettings, OpenAISettings


class TestRequiredSettings:
    def test_missing_database_url(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValidationError):
            DbSettings(_env_file=None)

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValidationError):
            OpenAISettings(_env_file=None)

    def test_blank_api_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "  ")
        with pytest.raises(ValidationError):
            OpenAISettings(_env_file=None)


class TestDatabaseUrl:
    @pytest.mark.parametrize(
        "raw",
        ["postgres://u:p@db/chat", "postgresql://u:p@db/chat"],
    )
    def test_postgres_urls_get_async_driver(self, monkeypatch, raw):
        monkeypatch.setenv("DATABASE_URL", raw)
        assert DbSettings(_env_file=None).DATABASE_URL == "postgresql+asyncpg://u:p@db/chat"

    def test_sqlite_url_untouched(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./chat.db")
        assert DbSettings(_env_file=None).DATABASE_URL == "sqlite+aiosqlite:///./chat.db"
