"""
SQLite Database Adapter

SQLite is the default backend: a single file, no server, one writer at a
time. Good for local development, tests and single-instance deployments.
"""

from typing import Any

from sqlalchemy.pool import NullPool

from qrlink.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """SQLite database adapter implementation."""

    def get_pool_class(self) -> type[NullPool]:
        """
        SQLite uses NullPool: a file-based database gains nothing from
        pooling, and fresh connections keep background tasks and test event
        loops from sharing a connection.
        """
        return NullPool

    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def get_dialect_name(self) -> str:
        return "sqlite"
