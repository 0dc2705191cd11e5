"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: Abstract base class for database implementations
- SQLiteAdapter / PostgreSQLAdapter: Backend-specific configuration
- Session management: Database session creation and table bootstrap
"""

from qrlink.db.interface import DatabaseAdapter
from qrlink.db.session import get_session, async_session_maker, engine, init_db

__all__ = [
    "DatabaseAdapter",
    "get_session",
    "async_session_maker",
    "engine",
    "init_db",
]
