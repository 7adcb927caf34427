"""
Async SQLAlchemy engine and session handling for the tenant data store.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from talent_engine.config import Settings, get_settings


class Base(DeclarativeBase):
    """Declarative base for tenant, matching and ATS event tables."""


def engine_options(database_url: str, settings: Settings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine``.

    SQLite drivers run on a single-connection pool and reject the
    sizing arguments, so those are only passed for server databases.
    """
    options: dict[str, Any] = {"echo": settings.db_echo, "pool_pre_ping": True}
    if make_url(database_url).get_backend_name() != "sqlite":
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    return options


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection.

    SQLite ignores FOREIGN KEY clauses unless each connection opts in.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _foreign_keys_on(dbapi_connection: Any, _: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class DatabaseManager:
    """Lazily builds the engine and hands out transactional sessions."""

    def __init__(self, database_url: str | None = None) -> None:
        """
        Args:
            database_url: Overrides ``Settings.database_url`` (tests pass SQLite).
        """
        self._database_url = database_url or get_settings().database_url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(
                self._database_url, **engine_options(self._database_url, get_settings())
            )
            if self._engine.dialect.name == "sqlite":
                enable_sqlite_foreign_keys(self._engine)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine, expire_on_commit=False, autoflush=False
            )
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work: commit when the block exits cleanly, else roll back."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create every mapped table. Used for local development and tests."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


_db_manager: DatabaseManager | None = None


def get_database_manager() -> DatabaseManager:
    """Process-wide manager shared by request handlers and the lifespan hook."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session committed after the request."""
    async with get_database_manager().session() as session:
        yield session


__all__ = [
    "Base",
    "DatabaseManager",
    "enable_sqlite_foreign_keys",
    "engine_options",
    "get_database_manager",
    "get_db_session",
]
