"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from qbopulse.config import DEFAULT_DB_PATH
from qbopulse.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str | Path] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks QBOPULSE_DB_PATH
            environment variable, then defaults to ~/.qbopulse/qbopulse.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("QBOPULSE_DB_PATH") or DEFAULT_DB_PATH

    path = Path(database_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return SQLAlchemyDatabase(f"sqlite:///{path}")
