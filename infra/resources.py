"""Infrastructure resources: relational database and completion provider.

This module is part of the infra layer and must not import from application features.
"""
from typing import Any, AsyncIterator, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from api.shared.exceptions import ExternalServiceError


class DatabaseResource:
    """Database resource for dependency injection."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.echo = echo
        self.engine = None
        self.session_factory = None

    @property
    def dialect(self) -> str:
        return self.database_url.split(":", 1)[0].split("+", 1)[0]

    async def init(self):
        """Initialize database connection."""
        engine_kwargs: Dict[str, Any] = {"echo": self.echo, "pool_pre_ping": True}
        if self.dialect != "sqlite":
            engine_kwargs["pool_recycle"] = 3600
        self.engine = create_async_engine(self.database_url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        return self

    def get_session(self) -> AsyncSession:
        """Get database session (synchronous accessor)."""
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.session_factory()

    async def create_schema(self, metadata) -> None:
        """Create all tables known to ``metadata`` (local/dev/test only)."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        async with self.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def shutdown(self):
        """Shutdown database connection."""
        if self.engine:
            await self.engine.dispose()


class CompletionProviderError(ExternalServiceError):
    """Raised when the completion provider fails before or during streaming."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("completion-provider", message, details)


class CompletionClientResource:
    """Streaming chat-completion client for dependency injection.

    Built once at startup and handed to the relay; the underlying
    ``AsyncOpenAI`` client owns an HTTP connection pool that is closed on
    shutdown.
    """

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.client: Optional[AsyncOpenAI] = None

    async def init(self):
        """Initialize the provider client."""
        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )
        return self

    async def stream_completion(
        self,
        messages: List[Dict[str, Any]],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> AsyncIterator[str]:
        """Yield text tokens in the order the provider emits them.

        Empty deltas (role headers, finish markers) are dropped. Closing the
        generator early closes the provider stream.
        """
        if self.client is None:
            raise RuntimeError("Completion client not initialized. Call init() first.")

        try:
            stream = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                stream=True,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as e:
            raise CompletionProviderError(str(e), {"model": model}) from e

        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except OpenAIError as e:
            raise CompletionProviderError(str(e), {"model": model}) from e
        finally:
            await stream.close()

    async def shutdown(self):
        """Close the provider client."""
        if self.client is not None:
            await self.client.close()
            self.client = None
        return self
