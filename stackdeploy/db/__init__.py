"""Database layer package for SQL connectivity boundaries."""

from .health import SQLAlchemyDatabaseHealthService
from .interfaces import DatabaseHealthPort
from .session import db_create_engine

__all__ = [
	"DatabaseHealthPort",
	"SQLAlchemyDatabaseHealthService",
	"db_create_engine",
]
