"""
Database Session Management

This module handles async database connections using SQLAlchemy's async engine.
The backend-specific configuration comes from a DatabaseAdapter chosen by the
scheme of DATABASE_URL.

Key Features:
- Database abstraction: SQLite by default, PostgreSQL via DATABASE_URL
- Async session management: Proper async context management
- Error handling: Automatic rollback on exceptions
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from qrlink.core.setting import settings
from qrlink.db.interface import DatabaseAdapter
from qrlink.db.postgres_adapter import PostgreSQLAdapter
from qrlink.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


def get_database_adapter(database_url: str) -> DatabaseAdapter:
    """
    Pick the adapter matching the URL scheme.

    Raises:
        ValueError: If the URL names an unsupported backend
    """
    if database_url.startswith("sqlite"):
        return SQLiteAdapter()
    if database_url.startswith("postgresql"):
        return PostgreSQLAdapter()
    raise ValueError(f"Unsupported database URL scheme: {database_url.split(':', 1)[0]}")


db_adapter = get_database_adapter(settings.DATABASE_URL)

engine = db_adapter.create_engine(settings.DATABASE_URL)

async_session_maker = async_sessionmaker(
    engine,
    class_=SQLModelAsyncSession,
    expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.

    Commits when the endpoint returns normally and rolls back on any
    exception; the context manager closes the session.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create any missing tables from the SQLModel metadata."""
    from qrlink.db import models  # noqa: F401  (registers the tables)

    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    logger.info(f"Database tables ensured ({db_adapter.get_dialect_name()})")


async def drop_db() -> None:
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.drop_all)
