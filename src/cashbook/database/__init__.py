"""Database layer for cashbook application."""

from cashbook.database.base import Database
from cashbook.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
