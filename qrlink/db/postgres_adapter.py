"""
PostgreSQL Database Adapter

Used when DATABASE_URL points at postgresql+asyncpg://. Keeps SQLAlchemy's
default async queue pool.
"""

from typing import Any, Optional

from sqlalchemy.pool import Pool

from qrlink.db.interface import DatabaseAdapter


class PostgreSQLAdapter(DatabaseAdapter):
    """PostgreSQL database adapter implementation."""

    def get_pool_class(self) -> Optional[type[Pool]]:
        return None

    def get_connect_args(self) -> dict[str, Any]:
        return {}

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_pre_ping": True,  # Drop connections the server closed while idle
        }

    def get_dialect_name(self) -> str:
        return "postgresql"
