"""Database connection management."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import urlparse

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

# Registers the table on SQLModel.metadata
from topicrelay.domain.entities.thread_topic import ThreadTopic  # noqa: F401


class Database:
    """Non-blocking database connection manager.

    Attributes:
        url: SQLAlchemy connection URL.
        engine: Async database engine (available after initialize()).

    Example:
        >>> database = Database("sqlite+aiosqlite:///./data/topicrelay.db")
        >>> await database.initialize()
        >>> async with database.get_session() as session:
        ...     topic = await session.get(ThreadTopic, "thread:C1:1.0")
        >>> await database.close()
    """

    def __init__(self, url: str) -> None:
        """Initialize Database with connection URL.

        Args:
            url: SQLAlchemy-style connection URL with an async driver.

        Raises:
            ValueError: If URL is empty or does not name a driver.
        """
        if not url:
            raise ValueError("Database URL cannot be empty")

        scheme = urlparse(url).scheme
        if "+" not in scheme:
            raise ValueError(f"Invalid database URL format: {url}")

        self._url = url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def url(self) -> str:
        """Get the connection URL."""
        return self._url

    @property
    def engine(self) -> AsyncEngine:
        """Get the async engine.

        Raises:
            RuntimeError: If database is not initialized.
        """
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._engine

    async def initialize(self) -> None:
        """Create the engine and any missing tables."""
        self._ensure_sqlite_directory()

        self._engine = create_async_engine(self._url, echo=False)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    def _ensure_sqlite_directory(self) -> None:
        """Create the parent directory of a SQLite database file."""
        parsed = urlparse(self._url)
        if not parsed.scheme.startswith("sqlite"):
            return

        # sqlite+aiosqlite:///relative.db parses to path "/relative.db"
        db_path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def close(self) -> None:
        """Close database connection and dispose engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Get a database session.

        Yields:
            AsyncSession: Session that commits on success and rolls back
                on exception.

        Raises:
            RuntimeError: If database is not initialized or has been closed.
        """
        if self._session_factory is None:
            raise RuntimeError("Database not initialized or has been closed.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
