"""Database layer for qbopulse."""

from qbopulse.database.base import Database
from qbopulse.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
