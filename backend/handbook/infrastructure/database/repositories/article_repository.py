"""Concrete repository implementation backed by SQLAlchemy."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from handbook.application.interfaces import ArticleRepository
from handbook.domain.entities import Article, ArticleStatus
from handbook.domain.exceptions import ConflictError, StorageUnavailableError
from handbook.infrastructure.database.models import ArticleModel

logger = logging.getLogger(__name__)


class SQLAlchemyArticleRepository(ArticleRepository):
    """Implements the ArticleRepository port using SQLAlchemy async sessions.

    Updates are issued as ``UPDATE ... WHERE id = :id AND revision = :revision``
    so a row changed by another transaction since it was read is never
    overwritten; zero affected rows becomes a ConflictError.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: ArticleModel) -> Article:
        """Map ORM model → domain entity."""
        return Article(
            internal_id=model.id,
            public_id=model.public_id,
            version=model.version,
            status=ArticleStatus(model.status),
            title=model.title,
            description=model.description,
            content=model.content,
            edited_by=model.edited_by,
            is_editable=model.is_editable,
            is_submitted=model.is_submitted,
            deny_text=model.deny_text,
            revision=model.revision,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Article) -> ArticleModel:
        """Map domain entity → ORM model (for creation)."""
        return ArticleModel(
            public_id=entity.public_id,
            version=entity.version,
            status=entity.status.value,
            title=entity.title,
            description=entity.description,
            content=entity.content,
            edited_by=entity.edited_by,
            is_editable=entity.is_editable,
            is_submitted=entity.is_submitted,
            deny_text=entity.deny_text,
            revision=entity.revision,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def _fetch(self, stmt: Select) -> list[Article]:
        # Conditional updates bypass the identity map, so always refresh from the row.
        stmt = stmt.execution_options(populate_existing=True)
        try:
            result = await self._session.execute(stmt)
        except (OperationalError, InterfaceError) as exc:
            logger.error("Article query failed: %s", exc)
            raise StorageUnavailableError(f"Article store unavailable: {exc}") from exc
        return [self._to_entity(row) for row in result.scalars().all()]

    async def find(
        self,
        public_id: str,
        version: int | None = None,
        status: ArticleStatus | None = None,
    ) -> Article | None:
        stmt = select(ArticleModel).where(ArticleModel.public_id == public_id)
        if version is not None:
            stmt = stmt.where(ArticleModel.version == version)
        if status is not None:
            stmt = stmt.where(ArticleModel.status == status.value)
        stmt = stmt.order_by(ArticleModel.version.desc()).limit(1)
        rows = await self._fetch(stmt)
        return rows[0] if rows else None

    async def find_many(
        self,
        *,
        public_id: str | None = None,
        status: ArticleStatus | None = None,
        edited_by: str | None = None,
        is_editable: bool | None = None,
    ) -> list[Article]:
        stmt = select(ArticleModel)

        if public_id is not None:
            stmt = stmt.where(ArticleModel.public_id == public_id)
        if status is not None:
            stmt = stmt.where(ArticleModel.status == status.value)
        if edited_by is not None:
            stmt = stmt.where(ArticleModel.edited_by == edited_by)
        if is_editable is not None:
            stmt = stmt.where(ArticleModel.is_editable == is_editable)

        stmt = stmt.order_by(ArticleModel.public_id, ArticleModel.version)
        return await self._fetch(stmt)

    async def find_latest(self, public_id: str) -> Article | None:
        stmt = (
            select(ArticleModel)
            .where(ArticleModel.public_id == public_id)
            .order_by(ArticleModel.created_at.desc(), ArticleModel.id.desc())
            .limit(1)
        )
        rows = await self._fetch(stmt)
        return rows[0] if rows else None

    async def find_latest_approved(self, public_id: str) -> Article | None:
        return await self.find(public_id, status=ArticleStatus.APPROVED)

    async def max_version(self, public_id: str) -> int | None:
        stmt = select(func.max(ArticleModel.version)).where(ArticleModel.public_id == public_id)
        try:
            result = await self._session.execute(stmt)
        except (OperationalError, InterfaceError) as exc:
            raise StorageUnavailableError(f"Article store unavailable: {exc}") from exc
        return result.scalar_one_or_none()

    async def save(self, article: Article) -> Article:
        if article.internal_id is None:
            return await self._insert(article)

        stmt = (
            update(ArticleModel)
            .where(
                ArticleModel.id == article.internal_id,
                ArticleModel.revision == article.revision,
            )
            .values(
                status=article.status.value,
                title=article.title,
                description=article.description,
                content=article.content,
                edited_by=article.edited_by,
                is_editable=article.is_editable,
                is_submitted=article.is_submitted,
                deny_text=article.deny_text,
                updated_at=article.updated_at,
                revision=ArticleModel.revision + 1,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as exc:
            raise ConflictError(
                article.public_id, "another working copy of this article is open"
            ) from exc
        except (OperationalError, InterfaceError) as exc:
            logger.error("Article update failed: %s", exc)
            raise StorageUnavailableError(f"Article store unavailable: {exc}") from exc

        if result.rowcount == 0:
            raise ConflictError(
                article.public_id,
                f"version {article.version} was modified since it was read",
            )
        return replace(article, revision=article.revision + 1)

    async def _insert(self, article: Article) -> Article:
        model = self._to_model(article)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                article.public_id,
                f"version {article.version} already exists or a working copy is open",
            ) from exc
        except (OperationalError, InterfaceError) as exc:
            logger.error("Article insert failed: %s", exc)
            raise StorageUnavailableError(f"Article store unavailable: {exc}") from exc
        return self._to_entity(model)

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        try:
            async with self._session.begin_nested():
                yield
        except (OperationalError, InterfaceError) as exc:
            logger.error("Article savepoint failed: %s", exc)
            raise StorageUnavailableError(f"Article store unavailable: {exc}") from exc
