"""Async database engine and session for the feedback store.

The engine is process-wide state owned by a `Database`. It is created lazily on first
use, shared by every request, and disposed at shutdown. Concurrent first uses await the
same pending connection attempt instead of opening their own.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from feedback_api.core.config import Settings, get_settings
from feedback_api.core.exceptions import StorageError

logger = logging.getLogger(__name__)

# asyncpg does not support libpq params like sslmode; strip them and use connect_args for SSL
ASYNCPG_UNSUPPORTED_QUERY_KEYS = frozenset({"sslmode", "ssl_mode"})


class Base(DeclarativeBase):
    pass


def engine_url_and_connect_args(raw: str):
    """Translate libpq `sslmode` into asyncpg connect_args. Other URLs pass through unchanged."""
    url = make_url(raw)
    if not url.drivername.startswith("postgresql"):
        return raw, {}

    sslmode = None
    unsupported = [key for key in url.query if key.lower() in ASYNCPG_UNSUPPORTED_QUERY_KEYS]
    for key in unsupported:
        vals = url.query[key]
        if isinstance(vals, tuple):
            vals = vals[0] if vals else None
        if vals and sslmode is None:
            sslmode = vals
    url = url.difference_update_query(unsupported)

    connect_args = {}
    if sslmode and str(sslmode).lower() in ("require", "verify-ca", "verify-full"):
        connect_args["ssl"] = True
    return url.render_as_string(hide_password=False), connect_args


def _redact(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


class Database:
    """Lazily connected, process-wide handle on the feedback store."""

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine_kwargs = engine_kwargs
        self._engine: Optional[AsyncEngine] = None
        self._pending: Optional[asyncio.Future] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        kwargs = {}
        if not settings.database_url_async.startswith("sqlite"):
            kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=True,
            )
        return cls(settings.database_url_async, **kwargs)

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> AsyncEngine:
        """Return the shared engine, opening it on first use."""
        if self._engine is not None:
            return self._engine

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._open())
        pending = self._pending

        try:
            engine = await asyncio.shield(pending)
        except Exception:
            # Let the next caller start a fresh attempt
            if self._pending is pending:
                self._pending = None
            raise

        # A close() while we waited means this engine is already disposed; don't cache it
        if self._pending is pending and self._engine is None:
            self._engine = engine
            self._session_factory = make_session_factory(engine)
        return engine

    async def _open(self) -> AsyncEngine:
        try:
            url, connect_args = engine_url_and_connect_args(self.url)
            kwargs = {"echo": False, **self.engine_kwargs}
            if connect_args:
                kwargs["connect_args"] = connect_args
            if url.startswith("sqlite"):
                # aiosqlite connections are bound to the loop that opened them
                kwargs.setdefault("poolclass", NullPool)

            logger.info(f"Connecting to database {_redact(url)}")
            engine = create_async_engine(url, **kwargs)
        except Exception as e:
            raise StorageError(f"Could not create database engine: {e}") from e

        try:
            await init_db(engine)
        except Exception as e:
            await engine.dispose()
            logger.error(f"Database connection failed: {e}")
            raise StorageError(f"Could not connect to database: {e}") from e

        logger.info("Database connection established")
        return engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        engine = await self.connect()
        factory = self._session_factory
        if factory is None or self._engine is not engine:
            # closed after connect() handed us the engine
            factory = make_session_factory(engine)
        async with factory() as session:
            yield session

    async def close(self) -> None:
        engine, self._engine = self._engine, None
        self._pending = None
        self._session_factory = None
        if engine is not None:
            await engine.dispose()
            logger.info("Database connection closed")


async def init_db(engine: AsyncEngine) -> None:
    """Create tables if they do not exist."""
    from feedback_api import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


_database: Optional[Database] = None


def get_database() -> Database:
    """Process-wide database handle, built from settings on first access."""
    global _database
    if _database is None:
        _database = Database.from_settings(get_settings())
    return _database


async def close_database() -> None:
    global _database
    if _database is not None:
        await _database.close()
        _database = None
