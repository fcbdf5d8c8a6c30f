"""Shared DB utilities for the API and migration tooling."""


def convert_async_to_sync_dsn(dsn: str) -> str:
    """Convert an async driver DSN to its sync counterpart for Alembic."""
    return dsn.replace("+asyncpg", "+psycopg").replace("+aiosqlite", "")
