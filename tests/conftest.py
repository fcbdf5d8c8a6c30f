"""
Shared fixtures.

The app reads its settings at import time, so the required variables are set
here before anything under ``api`` is imported. Each test then gets its own
SQLite file and a scripted completion client through provider overriding.
"""
import os
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

_TMP_DIR = Path(tempfile.mkdtemp(prefix="chat-tests-"))

os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP_DIR / 'default.db'}")
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["DB_AUTO_CREATE_SCHEMA"] = "true"

from dependency_injector import providers  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from api.shared.entities.registry import BaseEntity  # noqa: E402
from infra.resources import DatabaseResource  # noqa: E402
from tests.fakes import FakeCompletionClient  # noqa: E402


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def fake_completion():
    return FakeCompletionClient()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}"


@pytest.fixture
def app():
    from api.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
def client(app, database_url, fake_completion):
    """TestClient with lifespan, bound to a fresh database."""
    infrastructure = app.container.infrastructure
    database = DatabaseResource(database_url)
    with infrastructure.database.override(providers.Object(database)), \
            infrastructure.completion_client.override(providers.Object(fake_completion)):
        with TestClient(app) as test_client:
            yield test_client


@pytest_asyncio.fixture
async def database(database_url):
    """Initialized database resource with the schema created."""
    resource = DatabaseResource(database_url)
    await resource.init()
    await resource.create_schema(BaseEntity.metadata)
    yield resource
    await resource.shutdown()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.get_session() as session:
        yield session
