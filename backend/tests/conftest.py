"""Shared fixtures: an in-memory article repository and an in-memory SQLite engine."""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import replace

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from handbook.application.interfaces import ArticleRepository
from handbook.application.services import ArticleWorkflowService
from handbook.domain.entities import Article, ArticleContent, ArticleStatus
from handbook.domain.exceptions import ConflictError
from handbook.infrastructure.database.base import Base
from handbook.infrastructure.database.session import enable_sqlite_savepoints


# ── Fakes ────────────────────────────────────────────────────────────


class FakeArticleRepository(ArticleRepository):
    """In-memory fake repository for unit testing.

    Every call yields to the event loop once, so concurrent tasks interleave
    between their read and their write the way separate requests would.
    Like the database, it refuses a second open working copy per article.
    Writes inside ``atomic()`` are journaled per task and undone on error.
    """

    def __init__(self):
        self._rows: dict[int, Article] = {}
        self._next_id = 1
        self._journal: ContextVar[list | None] = ContextVar("journal", default=None)

    def _matching(self, **filters) -> list[Article]:
        return [
            row
            for row in self._rows.values()
            if all(value is None or getattr(row, key) == value for key, value in filters.items())
        ]

    async def find(self, public_id, version=None, status=None):
        await asyncio.sleep(0)
        rows = self._matching(public_id=public_id, version=version, status=status)
        rows.sort(key=lambda a: a.version, reverse=True)
        return replace(rows[0]) if rows else None

    async def find_many(self, *, public_id=None, status=None, edited_by=None, is_editable=None):
        await asyncio.sleep(0)
        rows = self._matching(
            public_id=public_id, status=status, edited_by=edited_by, is_editable=is_editable
        )
        rows.sort(key=lambda a: (a.public_id, a.version))
        return [replace(row) for row in rows]

    async def find_latest(self, public_id):
        await asyncio.sleep(0)
        rows = self._matching(public_id=public_id)
        rows.sort(key=lambda a: (a.created_at, a.internal_id), reverse=True)
        return replace(rows[0]) if rows else None

    async def find_latest_approved(self, public_id):
        return await self.find(public_id, status=ArticleStatus.APPROVED)

    async def max_version(self, public_id):
        await asyncio.sleep(0)
        versions = [row.version for row in self._matching(public_id=public_id)]
        return max(versions) if versions else None

    async def save(self, article: Article) -> Article:
        await asyncio.sleep(0)
        journal = self._journal.get()
        if article.is_open and any(
            row.is_open and row.internal_id != article.internal_id
            for row in self._matching(public_id=article.public_id)
        ):
            raise ConflictError(article.public_id, "another working copy of this article is open")
        if article.internal_id is None:
            if self._matching(public_id=article.public_id, version=article.version):
                raise ConflictError(article.public_id, f"version {article.version} already exists")
            stored = replace(article, internal_id=self._next_id)
            self._next_id += 1
            previous = None
        else:
            previous = self._rows.get(article.internal_id)
            if previous is None or previous.revision != article.revision:
                raise ConflictError(
                    article.public_id, f"version {article.version} was modified since it was read"
                )
            stored = replace(article, revision=article.revision + 1)
        self._rows[stored.internal_id] = stored
        if journal is not None:
            journal.append((stored.internal_id, previous))
        return replace(stored)

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        if self._journal.get() is not None:
            yield
            return
        journal: list = []
        token = self._journal.set(journal)
        try:
            yield
        except Exception:
            for internal_id, previous in reversed(journal):
                if previous is None:
                    self._rows.pop(internal_id, None)
                else:
                    self._rows[internal_id] = previous
            raise
        finally:
            self._journal.reset(token)

    # test helpers
    def all_rows(self) -> list[Article]:
        return sorted((replace(r) for r in self._rows.values()), key=lambda a: a.internal_id)

    def put(self, article: Article) -> Article:
        stored = replace(article, internal_id=self._next_id)
        self._next_id += 1
        self._rows[stored.internal_id] = stored
        return replace(stored)


@pytest.fixture
def repository() -> FakeArticleRepository:
    return FakeArticleRepository()


@pytest.fixture
def service(repository: FakeArticleRepository) -> ArticleWorkflowService:
    return ArticleWorkflowService(repository)


@pytest.fixture
def content_factory():
    """Builds ArticleContent payloads with sensible defaults."""

    def _build(**overrides) -> ArticleContent:
        defaults = {
            "title": "T1",
            "description": "D1",
            "content": "C1",
            "edited_by": "alice",
        }
        defaults.update(overrides)
        return ArticleContent(**defaults)

    return _build


# ── SQLite ───────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(sqlite_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()
