"""Read-only addressing schemes for the many stored revisions of an article."""

import logging

from handbook.application.interfaces import ArticleRepository
from handbook.domain.entities import Article, ArticleStatus, WorkingCopyInfo
from handbook.domain.exceptions import EntityNotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _require(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(field, "must not be null or empty")
    return value


def parse_status(value: str | ArticleStatus) -> ArticleStatus:
    """Parse a status name, raising ValidationError for unknown values."""
    try:
        return ArticleStatus.parse(value)
    except ValueError as exc:
        raise ValidationError("status", str(exc)) from exc


class ArticleLookupResolver:
    """Resolves which stored revision a caller means.

    Single-record lookups raise ``EntityNotFoundError`` instead of returning
    None; collection lookups return an empty list when nothing matches.
    Every lookup that concerns one article is scoped by its public id.
    """

    def __init__(self, repository: ArticleRepository):
        self._repository = repository

    async def latest(self, public_id: str) -> Article:
        _require("public_id", public_id)
        article = await self._repository.find_latest(public_id)
        if article is None:
            raise EntityNotFoundError("Article", public_id)
        return article

    async def latest_approved(self, public_id: str) -> Article:
        _require("public_id", public_id)
        article = await self._repository.find_latest_approved(public_id)
        if article is None:
            raise EntityNotFoundError("Approved article", public_id)
        return article

    async def current(self, public_id: str) -> Article:
        """The revision readers see: the latest approved one, else the latest draft."""
        _require("public_id", public_id)
        article = await self._repository.find_latest_approved(public_id)
        if article is None:
            article = await self._repository.find_latest(public_id)
        if article is None:
            raise EntityNotFoundError("Article", public_id)
        return article

    async def by_version(self, public_id: str, version: int) -> Article:
        _require("public_id", public_id)
        article = await self._repository.find(public_id, version=version)
        if article is None:
            raise EntityNotFoundError("Article", f"{public_id}@{version}")
        return article

    async def by_version_and_status(
        self, public_id: str, version: int, status: str | ArticleStatus
    ) -> Article:
        _require("public_id", public_id)
        status = parse_status(status)
        article = await self._repository.find(public_id, version=version, status=status)
        if article is None:
            raise EntityNotFoundError("Article", f"{public_id}@{version} ({status.value})")
        return article

    async def find_by_status(
        self, public_id: str, status: str | ArticleStatus
    ) -> Article | None:
        """Like ``by_status`` but returns None so callers can tell absence apart."""
        _require("public_id", public_id)
        return await self._repository.find(public_id, status=parse_status(status))

    async def by_status(self, public_id: str, status: str | ArticleStatus) -> Article:
        status = parse_status(status)
        article = await self.find_by_status(public_id, status)
        if article is None:
            raise EntityNotFoundError("Article", f"{public_id} ({status.value})")
        return article

    async def approved(self, public_id: str) -> list[Article]:
        """Every approved revision of one article, oldest version first.

        The lineage includes closed submissions: approving version N stores the
        reviewed content as N + 1 and relabels the submitted row N as
        ``APPROVED`` with ``is_editable=False``, so row N holds the content as
        it was submitted, not as it was approved.
        """
        _require("public_id", public_id)
        return await self._repository.find_many(
            public_id=public_id, status=ArticleStatus.APPROVED
        )

    async def by_editor_and_status(
        self, edited_by: str, status: str | ArticleStatus
    ) -> list[Article]:
        _require("edited_by", edited_by)
        return await self._repository.find_many(
            edited_by=edited_by, status=parse_status(status)
        )

    async def list_by_status(self, status: str | ArticleStatus) -> list[Article]:
        return await self._repository.find_many(status=parse_status(status))

    async def list_approved(self) -> list[Article]:
        """The editable approved revision of every article, one row per article."""
        return await self._repository.find_many(
            status=ArticleStatus.APPROVED, is_editable=True
        )

    async def working_copy_editor(self, public_id: str) -> WorkingCopyInfo:
        article = await self.by_status(public_id, ArticleStatus.EDITING)
        logger.debug(
            "Working copy of %s is version %d by %s",
            public_id,
            article.version,
            article.edited_by,
        )
        return WorkingCopyInfo(
            public_id=article.public_id,
            edited_by=article.edited_by,
            version=article.version,
        )
