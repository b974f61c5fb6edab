"""Persistence layer for the SQL storage backend."""

from linkauth.infrastructure.persistence.database import Base, DatabaseManager

__all__ = ["Base", "DatabaseManager"]
