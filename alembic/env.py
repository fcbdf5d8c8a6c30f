from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from api.shared.entities.registry import BaseEntity
from core.settings import SETTINGS
from infra.db_utils import convert_async_to_sync_dsn

config = context.config
config.set_main_option(
    "sqlalchemy.url", convert_async_to_sync_dsn(SETTINGS.DATABASE.DATABASE_URL)
)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = BaseEntity.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
