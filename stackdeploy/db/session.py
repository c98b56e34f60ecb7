"""Database engine utilities for readiness probing.

This module keeps all SQLAlchemy engine construction inside the db layer.
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import NullPool


def db_create_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine for database readiness checks.

    Connections are not pooled so every readiness attempt opens a fresh
    connection against the database that is still starting.

    Args:
        database_url: SQLAlchemy database URL.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")

    return create_engine(database_url.strip(), poolclass=NullPool)
