"""
Alembic Environment Configuration

This file configures Alembic to work with our async SQLModel/SQLAlchemy setup.
It handles:
- Database connection from settings
- Model imports for autogenerate
- Sync engine creation for migrations (Alembic uses sync drivers)
"""

from logging.config import fileConfig
from sqlalchemy import pool, create_engine
from sqlalchemy.engine import Connection

from alembic import context

from qrlink.core.setting import settings
from sqlmodel import SQLModel
from qrlink.db import models  # noqa: F401  Import all models so Alembic can detect them

config = context.config


def to_sync_url(database_url: str) -> str:
    """
    Swap the async driver in ``database_url`` for its sync counterpart.

    - sqlite+aiosqlite:///path -> sqlite:///path
    - postgresql+asyncpg://... -> postgresql+psycopg2://...
    """
    if database_url.startswith("sqlite+aiosqlite://"):
        return database_url.replace("sqlite+aiosqlite://", "sqlite://", 1)
    if database_url.startswith("postgresql+asyncpg://"):
        return database_url.replace("postgresql+asyncpg://", "postgresql+psycopg2://", 1)
    return database_url


database_url = to_sync_url(settings.DATABASE_URL)

config.set_main_option("sqlalchemy.url", database_url)

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    This configures the context with just a URL
    and not an Engine. Calls to context.execute() here emit the given
    string to the script output.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run migrations with a connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode with a sync engine."""
    connectable = create_engine(
        database_url,
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        do_run_migrations(connection)

    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
