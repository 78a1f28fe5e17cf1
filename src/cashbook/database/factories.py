"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from cashbook.database.sqlalchemy_db import SQLAlchemyDatabase

DEFAULT_TENANT = "default"


def _resolve_tenant(tenant_id: Optional[str]) -> str:
    if tenant_id is None:
        tenant_id = os.environ.get("CASHBOOK_TENANT")
    return tenant_id or DEFAULT_TENANT


def create_sqlite_database(
    database_path: Optional[str] = None, tenant_id: Optional[str] = None
) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks CASHBOOK_DB_PATH
            environment variable, then defaults to ~/.cashbook/cashbook.db
        tenant_id: Tenant to bind to. If None, checks CASHBOOK_TENANT, then
            defaults to "default"

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("CASHBOOK_DB_PATH")

    if database_path is None:
        # Default to ~/.cashbook/cashbook.db
        home = Path.home()
        db_dir = home / ".cashbook"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "cashbook.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url, tenant_id=_resolve_tenant(tenant_id))


def create_database(database_url: str, tenant_id: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a database instance from any SQLAlchemy URL."""
    return SQLAlchemyDatabase(database_url, tenant_id=_resolve_tenant(tenant_id))
