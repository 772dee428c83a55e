"""Async database engine and session management.

``Database`` owns one async engine and its session factory.  It is
constructed explicitly (by the app lifespan or a CLI command) and disposed
when its owner shuts down; nothing here is a module-level singleton.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine.interfaces import DBAPIConnection
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import ConnectionPoolEntry, StaticPool


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every new SQLite connection.

    SQLite ignores ``FOREIGN KEY`` and ``ON DELETE CASCADE`` unless the
    pragma is set per connection.  No-op for other dialects.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: DBAPIConnection, _record: ConnectionPoolEntry) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_engine(database_url: str, *, schema: str | None = None, **kwargs: Any) -> AsyncEngine:
    """Create an async engine with the project's connection defaults.

    Args:
        database_url: Async connection string.
        schema: Optional PostgreSQL schema for isolated environments.
        **kwargs: Additional arguments passed to create_async_engine.

    Returns:
        The created async engine.
    """
    if schema is not None:
        connect_args = kwargs.pop("connect_args", {})
        if not isinstance(connect_args, dict):
            msg = "connect_args must be a dict"
            raise TypeError(msg)
        connect_args["options"] = f"-c search_path={schema},public"
        kwargs["connect_args"] = connect_args
    # Only set pool defaults for connection-pooled engines (not SQLite/StaticPool)
    uses_static_pool = kwargs.get("poolclass") is StaticPool or "sqlite" in database_url
    if not uses_static_pool:
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 5)
    engine = create_async_engine(database_url, **kwargs)
    enable_sqlite_foreign_keys(engine)
    return engine


class Database:
    """An open connection pool plus its session factory."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine: AsyncEngine | None = engine
        self._session_factory: async_sessionmaker[AsyncSession] | None = async_sessionmaker(
            engine, expire_on_commit=False
        )

    @classmethod
    def open(cls, database_url: str, *, schema: str | None = None, **kwargs: Any) -> "Database":
        """Create the engine and session factory for ``database_url``."""
        return cls(create_engine(database_url, schema=schema, **kwargs))

    @property
    def engine(self) -> AsyncEngine:
        """Return the underlying engine.

        Raises:
            RuntimeError: If the database has been disposed.
        """
        if self._engine is None:
            msg = "Database is closed."
            raise RuntimeError(msg)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Return the session factory.

        Raises:
            RuntimeError: If the database has been disposed.
        """
        if self._session_factory is None:
            msg = "Database is closed."
            raise RuntimeError(msg)
        return self._session_factory

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Yield a fresh session that is closed on exit."""
        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        """Dispose of the engine and release connections.  Safe to call twice."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
