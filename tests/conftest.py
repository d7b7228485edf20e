"""
Shared fixtures.

Every test that touches storage gets a fresh in-memory SQLite database
built by the same create_schema() the application runs at startup, FTS5
index included when the SQLite build has it.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from typing import Any

import pytest
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notesphere.backend.core.database import create_schema, enable_sqlite_savepoints
from notesphere.backend.models.note import Note
from notesphere.backend.repositories.note import NoteRepository

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_OWNER_ID = "00000000-0000-0000-0000-000000000001"
OTHER_OWNER_ID = "00000000-0000-0000-0000-000000000002"


def create_test_engine(url: str = TEST_DATABASE_URL, begin: str = "BEGIN") -> AsyncEngine:
    """SQLite engine with working savepoints. In-memory databases share one connection."""
    if url.endswith(":memory:"):
        engine = create_async_engine(url, poolclass=StaticPool, connect_args={"check_same_thread": False})
    else:
        engine = create_async_engine(url)
    return enable_sqlite_savepoints(engine, begin=begin)


async def insert_note(
    session: AsyncSession,
    owner_id: str = TEST_OWNER_ID,
    title: str = "Untitled",
    content: str = "",
    tags: list[str] | None = None,
    **fields: Any,
) -> Note:
    """Insert through the repository so tag rows and the FTS row are written too."""
    note = Note(owner_id=owner_id, title=title, content=content, **fields)
    note.tags = tags or []
    return await NoteRepository(session).insert(note)


async def _session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_test_engine()
    await create_schema(engine, fulltext_enabled=True)
    yield engine
    await engine.dispose()


@pytest.fixture
async def plain_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Tables only, no full-text index: search falls back to substring matching."""
    engine = create_test_engine()
    await create_schema(engine, fulltext_enabled=False)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session on the full schema; rolled back after the test."""
    async for session in _session(db_engine):
        yield session


@pytest.fixture
async def plain_session(plain_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async for session in _session(plain_engine):
        yield session


@pytest.fixture
def owner_id() -> str:
    return TEST_OWNER_ID


@pytest.fixture
def other_owner_id() -> str:
    return OTHER_OWNER_ID


@pytest.fixture
def note_inserter() -> Callable[..., Awaitable[Note]]:
    """insert_note, for tests that open their own sessions."""
    return insert_note


@pytest.fixture
def make_note(db_session: AsyncSession) -> Callable[..., Awaitable[Note]]:
    """
    Usage:
        async def test_search(make_note):
            note = await make_note(title="Plan", tags=["work"])
    """

    async def _make(**kwargs: Any) -> Note:
        return await insert_note(db_session, **kwargs)

    return _make


@pytest.fixture
def load_note(db_session: AsyncSession) -> Callable[[str], Awaitable[Note | None]]:
    """Fresh copy of a note from the database, trashed or not."""

    async def _load(note_id: str) -> Note | None:
        result = await db_session.execute(
            select(Note).where(Note.id == note_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    return _load


@pytest.fixture
def trash_note_at(db_session: AsyncSession) -> Callable[[str, datetime], Awaitable[None]]:
    """Move a note to the trash with a chosen deletion time."""

    async def _trash(note_id: str, deleted_at: datetime) -> None:
        await db_session.execute(
            update(Note)
            .where(Note.id == note_id)
            .values(is_deleted=True, deleted_at=deleted_at)
            .execution_options(synchronize_session=False)
        )

    return _trash


@pytest.fixture
def engine_factory() -> Callable[..., AsyncEngine]:
    """create_test_engine, for tests that need a file database."""
    return create_test_engine
