"""Application service (use case) for the article revision/approval workflow."""

import logging
from uuid import uuid4

from handbook.application.interfaces import ArticleRepository
from handbook.application.services.article_lookup_resolver import (
    ArticleLookupResolver,
    parse_status,
)
from handbook.domain.entities import Article, ArticleContent, ArticleStatus, WorkingCopyInfo
from handbook.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from handbook.domain.state_machine import ArticleCommand, ArticleStateMachine, validate_content

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (ArticleStatus.EDITING, ArticleStatus.DECLINED, ArticleStatus.SUBMITTED)


class ArticleWorkflowService:
    """Orchestrates state machine decisions against the article repository.

    Each write reads the record it mutates, asks the state machine for the
    next record and saves it conditionally on the revision it read. Conflicts
    are raised to the caller, never retried.
    """

    def __init__(
        self,
        repository: ArticleRepository,
        state_machine: ArticleStateMachine | None = None,
        resolver: ArticleLookupResolver | None = None,
    ):
        self._repository = repository
        self._machine = state_machine or ArticleStateMachine()
        self._resolver = resolver or ArticleLookupResolver(repository)

    # ── Commands ─────────────────────────────────────────────────────

    async def create_article(self, data: ArticleContent) -> Article:
        """Start editing a new article. Every article starts at version 0."""
        validate_content(data)
        public_id = data.public_id if data.public_id and data.public_id.strip() else str(uuid4())
        existing = await self._repository.find_latest(public_id)
        if existing is not None:
            raise ConflictError(public_id, "an article with this public id already exists")

        article = Article(
            public_id=public_id,
            title=data.title,
            description=data.description or "",
            content=data.content,
            edited_by=data.edited_by,
            version=0,
            status=ArticleStatus.EDITING,
            is_editable=False,
            is_submitted=False,
        )
        async with self._repository.atomic():
            created = await self._save(article)
        logger.info("Created article %s at version %d", created.public_id, created.version)
        return created

    async def update_article(
        self,
        public_id: str,
        data: ArticleContent,
        expected_version: int,
        is_editable: bool | None = None,
    ) -> Article:
        """Edit the revision at ``expected_version``.

        Open working copies are edited in place. Editing an approved revision
        starts a new working copy one above the highest stored version.
        """
        self._check_public_id(public_id, data)
        validate_content(data)
        if expected_version is None:
            raise ValidationError("version", "must not be null")
        current = await self._resolver.by_version(public_id, expected_version)

        if is_editable is None:
            is_editable = data.is_editable

        if self._machine.can(current.status, ArticleCommand.BRANCH):
            open_copy = await self._open_copy(public_id)
            max_version = await self._repository.max_version(public_id)
            next_version = (max_version if max_version is not None else current.version) + 1
            article = self._decide(
                lambda: self._machine.branch(current, data, next_version, open_copy)
            )
            async with self._repository.atomic():
                saved = await self._save(article)
            logger.info(
                "Started working copy of %s at version %d from approved version %d",
                public_id,
                saved.version,
                current.version,
            )
            return saved

        article = self._decide(lambda: self._machine.edit(current, data, is_editable))
        async with self._repository.atomic():
            saved = await self._save(article)
        logger.info("Edited article %s at version %d (%s)", public_id, saved.version, saved.status.value)
        return saved

    async def submit_article(self, data: ArticleContent) -> Article:
        """Submit the article's open working copy for review."""
        validate_content(data)
        public_id = data.public_id
        if public_id is None or not public_id.strip():
            raise ValidationError("public_id", "must not be null or empty")

        current = await self._resolver.find_by_status(public_id, ArticleStatus.EDITING)
        if current is None:
            current = await self._resolver.find_by_status(public_id, ArticleStatus.DECLINED)
        if current is None:
            await self._reject_missing(public_id, ArticleCommand.SUBMIT)

        article = self._decide(lambda: self._machine.submit(current, data))
        async with self._repository.atomic():
            saved = await self._save(article)
        logger.info("Submitted article %s at version %d", public_id, saved.version)
        return saved

    async def approve_article(self, public_id: str, data: ArticleContent) -> Article:
        """Approve the submitted revision as a new version.

        The approved row is inserted at ``submitted version + 1``; the
        previously editable approved row is demoted and the submitted row is
        closed, all in one transaction.
        """
        self._check_public_id(public_id, data)
        validate_content(data)
        submitted = await self._resolver.find_by_status(public_id, ArticleStatus.SUBMITTED)
        if submitted is None:
            await self._reject_missing(public_id, ArticleCommand.APPROVE)
        if data.version is not None and data.version != submitted.version:
            logger.warning(
                "Approval of %s requested for version %d, submitted version is %d",
                public_id,
                data.version,
                submitted.version,
            )
            raise ConflictError(
                public_id,
                f"approval requested for version {data.version} "
                f"but version {submitted.version} is submitted",
            )

        editable = await self._repository.find_many(
            public_id=public_id, status=ArticleStatus.APPROVED, is_editable=True
        )
        previous = editable[-1] if editable else None
        decision = self._decide(lambda: self._machine.approve(submitted, data, previous))

        async with self._repository.atomic():
            if decision.demoted is not None:
                await self._save(decision.demoted)
            await self._save(decision.closed)
            approved = await self._save(decision.approved)
        logger.info(
            "Approved article %s: version %d -> %d",
            public_id,
            submitted.version,
            approved.version,
        )
        return approved

    async def decline_article(
        self, public_id: str, status: str | ArticleStatus, reason: str
    ) -> Article:
        """Send the record in ``status`` back to editing with ``reason`` as deny text."""
        status = parse_status(status)
        current = await self._resolver.find_by_status(public_id, status)
        if current is None:
            await self._reject_missing(public_id, ArticleCommand.DECLINE)

        article = self._decide(lambda: self._machine.decline(current, reason))
        async with self._repository.atomic():
            saved = await self._save(article)
        logger.info("Declined article %s at version %d", public_id, saved.version)
        return saved

    # ── Queries ──────────────────────────────────────────────────────

    async def get_by_public_id(self, public_id: str) -> Article:
        return await self._resolver.current(public_id)

    async def get_latest(self, public_id: str) -> Article:
        return await self._resolver.latest(public_id)

    async def get_latest_approved(self, public_id: str) -> Article:
        return await self._resolver.latest_approved(public_id)

    async def get_by_version(self, public_id: str, version: int) -> Article:
        return await self._resolver.by_version(public_id, version)

    async def get_by_version_and_status(
        self, public_id: str, version: int, status: str | ArticleStatus
    ) -> Article:
        return await self._resolver.by_version_and_status(public_id, version, status)

    async def get_by_status(self, public_id: str, status: str | ArticleStatus) -> Article:
        return await self._resolver.by_status(public_id, status)

    async def get_working_copy_editor(self, public_id: str) -> WorkingCopyInfo:
        return await self._resolver.working_copy_editor(public_id)

    async def list_by_status(self, status: str | ArticleStatus) -> list[Article]:
        return await self._resolver.list_by_status(status)

    async def list_approved(self) -> list[Article]:
        return await self._resolver.list_approved()

    async def list_approved_versions(self, public_id: str) -> list[Article]:
        return await self._resolver.approved(public_id)

    async def list_by_editor_and_status(
        self, edited_by: str, status: str | ArticleStatus
    ) -> list[Article]:
        return await self._resolver.by_editor_and_status(edited_by, status)

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _check_public_id(public_id: str, data: ArticleContent) -> None:
        if public_id is None or not public_id.strip():
            raise ValidationError("public_id", "must not be null or empty")
        if data.public_id and data.public_id != public_id:
            raise ValidationError("public_id", "payload does not match the addressed article")

    def _decide(self, decision):
        try:
            return decision()
        except InvalidTransitionError as exc:
            logger.warning("Rejected transition: %s", exc)
            raise

    async def _save(self, article: Article) -> Article:
        try:
            return await self._repository.save(article)
        except ConflictError as exc:
            logger.warning("Write conflict: %s", exc)
            raise

    async def _open_copy(self, public_id: str) -> Article | None:
        for status in _OPEN_STATUSES:
            article = await self._repository.find(public_id, status=status)
            if article is not None:
                return article
        return None

    async def _reject_missing(self, public_id: str, command: ArticleCommand) -> None:
        """Raise NotFound for unknown articles, InvalidTransition for ones in the wrong state."""
        latest = await self._repository.find_latest(public_id)
        if latest is None:
            raise EntityNotFoundError("Article", public_id)
        current = await self._open_copy(public_id) or latest
        logger.warning(
            "Rejected %s of %s: current status is %s",
            command.value,
            public_id,
            current.status.value,
        )
        raise InvalidTransitionError(current.status.value, command.value)
