"""Tests for the lazily connected, single-flight database handle."""
import asyncio

import pytest
from sqlalchemy import text

from feedback_api.core.config import Settings
from feedback_api.core.exceptions import StorageError
from feedback_api.database import Database, engine_url_and_connect_args


def test_sslmode_is_moved_to_connect_args():
    url, connect_args = engine_url_and_connect_args(
        "postgresql+asyncpg://user:pw@db:5432/feedback?sslmode=require&application_name=api"
    )
    assert "sslmode" not in url
    assert "application_name=api" in url
    assert connect_args == {"ssl": True}


def test_sslmode_disable_needs_no_ssl():
    url, connect_args = engine_url_and_connect_args(
        "postgresql+asyncpg://db/feedback?sslmode=disable"
    )
    assert url == "postgresql+asyncpg://db/feedback"
    assert connect_args == {}


@pytest.mark.parametrize(
    "url",
    [
        "sqlite+aiosqlite:////tmp/feedback.db",
        "sqlite+aiosqlite:///./feedback.db",
        "sqlite+aiosqlite:///:memory:",
    ],
)
def test_sqlite_urls_pass_through_unchanged(url):
    assert engine_url_and_connect_args(url) == (url, {})


def test_password_survives_sslmode_rewrite():
    url, _ = engine_url_and_connect_args("postgresql+asyncpg://user:s3cret@db/feedback?sslmode=require")
    assert url == "postgresql+asyncpg://user:s3cret@db/feedback"


def test_pool_settings_only_for_server_databases():
    pg = Database.from_settings(Settings(DATABASE_URL="postgresql://db/feedback", DB_POOL_SIZE=3))
    assert pg.url == "postgresql+asyncpg://db/feedback"
    assert pg.engine_kwargs["pool_size"] == 3

    lite = Database.from_settings(Settings(DATABASE_URL="sqlite+aiosqlite:///./x.db"))
    assert lite.engine_kwargs == {}


@pytest.mark.asyncio
async def test_connection_is_lazy_and_cached(database):
    assert not database.is_connected

    engine = await database.connect()
    assert database.is_connected
    assert await database.connect() is engine

    await database.close()
    assert not database.is_connected


@pytest.mark.asyncio
async def test_concurrent_first_use_opens_one_connection(database, monkeypatch):
    calls = 0
    original_open = Database._open

    async def counting_open(self):
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return await original_open(self)

    monkeypatch.setattr(Database, "_open", counting_open)

    engines = await asyncio.gather(*(database.connect() for _ in range(5)))

    assert calls == 1
    assert all(engine is engines[0] for engine in engines)
    await database.close()


@pytest.mark.asyncio
async def test_failed_attempt_is_shared_then_retried(database, monkeypatch):
    calls = 0
    original_open = Database._open

    async def flaky_open(self):
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        if calls == 1:
            raise StorageError("Could not connect to database: refused")
        return await original_open(self)

    monkeypatch.setattr(Database, "_open", flaky_open)

    results = await asyncio.gather(
        database.connect(), database.connect(), return_exceptions=True
    )
    assert calls == 1
    assert all(isinstance(r, StorageError) for r in results)
    assert not database.is_connected

    await database.connect()
    assert calls == 2
    assert database.is_connected
    await database.close()


@pytest.mark.asyncio
async def test_session_usable_when_closed_right_after_connect(database, monkeypatch):
    connect = database.connect

    async def connect_then_close():
        engine = await connect()
        await database.close()
        return engine

    monkeypatch.setattr(database, "connect", connect_then_close)

    async with database.session() as session:
        assert (await session.execute(text("SELECT 1"))).scalar() == 1


@pytest.mark.asyncio
async def test_close_while_connecting_does_not_cache_engine(database):
    pending = asyncio.ensure_future(database.connect())
    await asyncio.sleep(0)
    await database.close()
    await pending
    assert not database.is_connected


@pytest.mark.asyncio
async def test_unreachable_store_raises_storage_error(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'nope' / 'feedback.db'}")
    with pytest.raises(StorageError, match="Could not connect to database"):
        await database.connect()
    assert not database.is_connected
