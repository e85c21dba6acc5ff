"""Database session management.

Hey future me - the provider only BOOTSTRAPS persistence: right after the config passes
validation we build the engine from dbUrl/dbUsername/dbPassword. Everything else about
the database (tables, queries, teardown) belongs to the persistence layer itself, which
is why provider.shutdown() never touches it. Call close_database() from the host.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lastfm_provider.domain.exceptions import ConfigError, InvalidStateException

logger = logging.getLogger(__name__)


def build_database_url(url: str, username: str, password: str) -> URL:
    """Merge credentials into the configured database URL.

    SQLite has no notion of users, so credentials are only applied to server backends.

    Raises:
        ConfigError: If the URL cannot be parsed
    """
    try:
        parsed = make_url(url)
    except ArgumentError as e:
        raise ConfigError(f"Invalid dbUrl '{url}': {e}") from e

    if parsed.get_backend_name() == "sqlite":
        return parsed
    return parsed.set(username=username, password=password)


class Database:
    """Database connection and session manager."""

    def __init__(self, url: str, username: str, password: str, echo: bool = False) -> None:
        """Initialize database engine.

        Raises:
            ConfigError: If the URL is invalid or its driver isn't installed
        """
        self.url = build_database_url(url, username, password)

        engine_kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
        if self.url.get_backend_name() == "sqlite":
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}

        try:
            self._engine = create_async_engine(self.url, **engine_kwargs)
        except (SQLAlchemyError, ImportError) as e:
            # Unknown dialect (NoSuchModuleError), sync driver on the async engine (InvalidRequestError)
            # or a DBAPI that isn't installed (ImportError)
            raise ConfigError(
                f"Cannot create database engine for {self.url.render_as_string(hide_password=True)}: {e}"
            ) from e

        if self.url.get_backend_name() == "sqlite":
            self._enable_sqlite_foreign_keys()

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def _enable_sqlite_foreign_keys(self) -> None:
        """Enable foreign key constraints for SQLite connections."""

        @event.listens_for(self._engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn: Any, _connection_record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope for database operations."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                # Rollback on any exception to keep the transaction consistent, then re-raise
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connection."""
        await self._engine.dispose()


_database: Database | None = None
# Engines replaced by initialize_database() that are still being disposed
_pending_disposals: set[asyncio.Task[None]] = set()


def _dispose_later(database: Database) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(database.close())
        return
    task = loop.create_task(database.close(), name="dispose-replaced-database")
    _pending_disposals.add(task)
    task.add_done_callback(_pending_disposals.discard)


# Hey future me - initialize() runs this on EVERY attempt, including retries after an
# AuthError. Same URL + credentials means the same engine, so a retry never builds a second
# pool. A different URL replaces the engine and the old pool gets disposed, never orphaned.
def initialize_database(url: str, username: str, password: str) -> Database:
    """Build (or reuse) the process-wide database from validated config values.

    Raises:
        ConfigError: If the URL is invalid or its driver isn't usable
    """
    global _database
    target = build_database_url(url, username, password)
    if _database is not None and _database.url == target:
        logger.debug("Reusing database engine for %s", target.render_as_string(hide_password=True))
        return _database

    previous, _database = _database, Database(url, username, password)
    if previous is not None:
        logger.info(
            "Replacing database engine for %s", previous.url.render_as_string(hide_password=True)
        )
        _dispose_later(previous)

    logger.info(
        "Database session factory initialized for %s",
        _database.url.render_as_string(hide_password=True),
    )
    return _database


def get_database() -> Database:
    """Get the process-wide database.

    Raises:
        InvalidStateException: If initialize_database() was never called
    """
    if _database is None:
        raise InvalidStateException("Database has not been initialized")
    return _database


async def close_database() -> None:
    """Dispose the process-wide database, if any, and wait for replaced ones."""
    global _database
    if _pending_disposals:
        await asyncio.gather(*_pending_disposals)
    if _database is not None:
        await _database.close()
        _database = None
