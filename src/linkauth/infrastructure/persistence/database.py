"""Database abstraction layer using SQLAlchemy 2.0 async.

This module provides the engine and session management used by the SQL
storage backend. It supports SQLite through aiosqlite (the embedded default)
and any other SQLAlchemy async driver, such as PostgreSQL through asyncpg.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from linkauth.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    All models should inherit from this class to get proper ORM mapping
    and metadata management.
    """

    pass


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _is_memory_sqlite(database_url: str) -> bool:
    path = database_url.split("://", 1)[-1].lstrip("/")
    return _is_sqlite(database_url) and path in ("", ":memory:")


class DatabaseManager:
    """Database connection and session manager.

    This class manages the async database engine and session factory.
    It provides context managers for database sessions and handles
    connection pooling.
    """

    def __init__(self, database_url: str, echo: bool = False, timeout: float = 5.0) -> None:
        """Initialize the database manager.

        Args:
            database_url: SQLAlchemy async database URL.
            echo: Log every SQL statement.
            timeout: Seconds to wait for a connection or a SQLite lock.
        """
        self.database_url = database_url
        self.echo = echo
        self.timeout = timeout
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the database engine.

        Returns:
            AsyncEngine: SQLAlchemy async engine instance.
        """
        if self._engine is None:
            if _is_memory_sqlite(self.database_url):
                # A single shared connection keeps the in-memory database alive
                self._engine = create_async_engine(
                    self.database_url,
                    echo=self.echo,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool,
                )
            elif _is_sqlite(self.database_url):
                self._engine = create_async_engine(
                    self.database_url,
                    echo=self.echo,
                    pool_timeout=self.timeout,
                    connect_args={"check_same_thread": False, "timeout": self.timeout},
                )
            else:
                self._engine = create_async_engine(
                    self.database_url,
                    echo=self.echo,
                    pool_timeout=self.timeout,
                    pool_pre_ping=True,
                )

            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the session factory.

        Returns:
            async_sessionmaker: SQLAlchemy async session factory.
        """
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            logger.debug("Database session factory created")
        return self._session_factory

    def ensure_directory(self) -> None:
        """Create the parent directory of a file based SQLite database."""
        if not _is_sqlite(self.database_url) or _is_memory_sqlite(self.database_url):
            return
        # Extract path from sqlite+aiosqlite:///path/to/file.db
        db_dir = Path(self.database_url.split(":///")[-1]).parent
        db_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Database directory ready", path=str(db_dir))

    async def create_tables(self) -> None:
        """Create all database tables that do not exist yet."""
        # Register the models with Base.metadata before create_all runs
        from linkauth.infrastructure.persistence import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created")

    async def disconnect(self) -> None:
        """Close the database engine and all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope for database operations.

        Yields:
            AsyncSession: SQLAlchemy async session.

        Example:
            async with db.session() as session:
                result = await session.execute(select(SessionTokenModel))
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def check_connection(self) -> bool:
        """Check if database connection is working.

        Returns:
            bool: True if connection is successful, False otherwise.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                logger.debug("Database connection check successful")
                return True
        except Exception as e:
            logger.error("Database connection check failed", error=str(e))
            return False
