"""Root pytest configuration: in-memory database, recording object store."""

from __future__ import annotations

import os

# Must be set before anything reads the cached settings/flags
os.environ.setdefault("FF_USE_REDIS", "false")
os.environ.setdefault("FF_USE_S3", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app import models  # noqa: F401  (registers tables)
from app.core.config import get_settings
from app.core.database import Base, enable_sqlite_foreign_keys
from app.core.flags import get_flags
from app.services.agenda import AgendaService
from app.services.content_tree import ContentTreeManager
from tests.utils import RecordingStorage


@pytest.fixture(autouse=True)
def _reset_cached_config():
    yield
    get_settings.cache_clear()
    get_flags.cache_clear()


@pytest.fixture
async def engine(tmp_path):
    # File-backed so concurrent sessions get their own connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def manager(db, storage):
    return ContentTreeManager(db, storage)


@pytest.fixture
def agendas(db):
    return AgendaService(db)
