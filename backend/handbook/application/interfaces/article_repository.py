"""Abstract repository interfaces (ports) — define the contract, not the implementation."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from handbook.domain.entities import Article, ArticleStatus


class ArticleRepository(ABC):
    """Port for versioned article storage — implemented in the infrastructure layer.

    Every stored row is one revision of an article. Writes are conditional:
    ``save`` only updates a row whose ``revision`` still equals the one read,
    and raises ``ConflictError`` otherwise. Driver failures surface as
    ``StorageUnavailableError``.
    """

    @abstractmethod
    async def find(
        self,
        public_id: str,
        version: int | None = None,
        status: ArticleStatus | None = None,
    ) -> Article | None:
        """Retrieve one revision of an article.

        When several rows match (no version given), the highest version wins.
        """
        ...

    @abstractmethod
    async def find_many(
        self,
        *,
        public_id: str | None = None,
        status: ArticleStatus | None = None,
        edited_by: str | None = None,
        is_editable: bool | None = None,
    ) -> list[Article]:
        """Retrieve every row matching all given filters, ordered by public_id then version."""
        ...

    @abstractmethod
    async def find_latest(self, public_id: str) -> Article | None:
        """Retrieve the most recently created revision of an article."""
        ...

    @abstractmethod
    async def find_latest_approved(self, public_id: str) -> Article | None:
        """Retrieve the approved revision with the highest version."""
        ...

    @abstractmethod
    async def max_version(self, public_id: str) -> int | None:
        """Return the highest stored version of an article, or None if it has no rows."""
        ...

    @abstractmethod
    async def save(self, article: Article) -> Article:
        """Insert a new revision or conditionally update an existing one.

        Rows without ``internal_id`` are inserted; a duplicate
        ``(public_id, version)`` raises ``ConflictError``. Other rows are
        updated only if their stored revision equals ``article.revision``;
        the returned copy carries the bumped revision.
        """
        ...

    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager[None]:
        """Group several writes so that either all of them or none persist."""
        ...
