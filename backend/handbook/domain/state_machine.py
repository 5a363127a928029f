"""Article lifecycle state machine.

Pure decision logic: every method takes a snapshot of the current record plus
the command payload and returns the record(s) that should be written next, or
raises. Nothing here performs I/O, so concurrent callers cannot affect one
another; the optimistic-concurrency guard lives in the repository.

Lifecycle::

    EDITING ──submit──▶ SUBMITTED ──approve──▶ APPROVED (new row, version + 1)
       ▲                   │                       │
       └─────decline───────┘                       └──edit──▶ EDITING (new row, max version + 1)
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from handbook.domain.entities.article import Article, ArticleContent, ArticleStatus
from handbook.domain.exceptions import InvalidTransitionError, ValidationError


class ArticleCommand(str, Enum):
    """Commands a caller can issue against an article revision."""

    EDIT = "edit"
    SUBMIT = "submit"
    APPROVE = "approve"
    DECLINE = "decline"
    BRANCH = "branch"


# Key: current status, value: command → resulting status
TRANSITIONS: dict[ArticleStatus, dict[ArticleCommand, ArticleStatus]] = {
    ArticleStatus.EDITING: {
        ArticleCommand.EDIT: ArticleStatus.EDITING,
        ArticleCommand.SUBMIT: ArticleStatus.SUBMITTED,
    },
    ArticleStatus.DECLINED: {
        ArticleCommand.EDIT: ArticleStatus.EDITING,
        ArticleCommand.SUBMIT: ArticleStatus.SUBMITTED,
    },
    ArticleStatus.SUBMITTED: {
        ArticleCommand.EDIT: ArticleStatus.SUBMITTED,
        ArticleCommand.APPROVE: ArticleStatus.APPROVED,
        ArticleCommand.DECLINE: ArticleStatus.EDITING,
    },
    ArticleStatus.APPROVED: {
        ArticleCommand.BRANCH: ArticleStatus.EDITING,
    },
}


def validate_content(payload: ArticleContent) -> None:
    """Reject payloads missing the fields every state-changing write needs."""
    for name in ("title", "content", "edited_by"):
        value = getattr(payload, name)
        if value is None or not str(value).strip():
            raise ValidationError(name, "must not be null or empty")
    if payload.version is not None and payload.version < 0:
        raise ValidationError("version", "must be a non-negative integer")


@dataclass(frozen=True)
class ApprovalDecision:
    """Records produced by one approval; written together in one transaction."""

    approved: Article
    closed: Article
    demoted: Article | None = None


class ArticleStateMachine:
    """Decides legal transitions between article states."""

    def allowed_commands(self, status: ArticleStatus) -> list[ArticleCommand]:
        return list(TRANSITIONS.get(status, {}))

    def can(self, status: ArticleStatus, command: ArticleCommand) -> bool:
        return command in TRANSITIONS.get(status, {})

    def _target(self, current: Article, command: ArticleCommand) -> ArticleStatus:
        target = TRANSITIONS.get(current.status, {}).get(command)
        if target is None:
            allowed = ", ".join(c.value for c in self.allowed_commands(current.status))
            raise InvalidTransitionError(
                current.status.value, command.value, f"allowed: {allowed or 'none'}"
            )
        return target

    # ── In-place transitions ────────────────────────────────────────

    def edit(
        self, current: Article, payload: ArticleContent, is_editable: bool | None = None
    ) -> Article:
        """Update the content of an open working copy without touching its version."""
        target = self._target(current, ArticleCommand.EDIT)
        validate_content(payload)
        return current.with_content(
            payload,
            status=target,
            is_editable=current.is_editable if is_editable is None else is_editable,
            is_submitted=target == ArticleStatus.SUBMITTED,
        )

    def submit(self, current: Article, payload: ArticleContent) -> Article:
        target = self._target(current, ArticleCommand.SUBMIT)
        validate_content(payload)
        return current.with_content(
            payload,
            status=target,
            is_editable=False,
            is_submitted=True,
        )

    def decline(self, current: Article, reason: str) -> Article:
        """Send a submitted record back to editing with the reviewer's reason."""
        target = self._target(current, ArticleCommand.DECLINE)
        if reason is None or not reason.strip():
            raise ValidationError("reason", "must not be null or empty")
        return current.copy(
            status=target,
            is_submitted=False,
            deny_text=reason,
        )

    # ── Transitions that create a new row ───────────────────────────

    def approve(
        self,
        submitted: Article,
        payload: ArticleContent,
        previous_editable: Article | None = None,
    ) -> ApprovalDecision:
        """Approve a submitted record.

        The approved content is stored as a new row one version above the
        submitted one. The submitted row keeps its version and is closed out;
        the approved row that was editable so far is demoted.
        """
        target = self._target(submitted, ArticleCommand.APPROVE)
        validate_content(payload)
        now = datetime.now(timezone.utc)
        approved = Article(
            public_id=submitted.public_id,
            title=payload.title,
            description=payload.description or "",
            content=payload.content,
            edited_by=payload.edited_by,
            version=submitted.version + 1,
            status=target,
            is_editable=True,
            is_submitted=False,
            deny_text=None,
            created_at=now,
            updated_at=now,
        )
        closed = submitted.copy(
            status=ArticleStatus.APPROVED,
            is_editable=False,
            is_submitted=False,
        )
        demoted = None
        if previous_editable is not None and previous_editable.is_editable:
            demoted = previous_editable.copy(is_editable=False)
        return ApprovalDecision(approved=approved, closed=closed, demoted=demoted)

    def branch(
        self,
        current: Article,
        payload: ArticleContent,
        next_version: int,
        open_copy: Article | None = None,
    ) -> Article:
        """Start a new working copy from an approved record.

        History is never mutated: the edit lands in a new EDITING row at
        ``next_version``. Only the approved record users may branch from
        (``is_editable``) qualifies, and only while no working copy is open.
        """
        target = self._target(current, ArticleCommand.BRANCH)
        if not current.is_editable:
            raise InvalidTransitionError(
                current.status.value,
                ArticleCommand.BRANCH.value,
                f"version {current.version} is no longer the editable approved version",
            )
        if open_copy is not None:
            raise InvalidTransitionError(
                current.status.value,
                ArticleCommand.BRANCH.value,
                f"a working copy at version {open_copy.version} is already open",
            )
        if next_version <= current.version:
            raise ValueError("next_version must be greater than the approved version")
        validate_content(payload)
        now = datetime.now(timezone.utc)
        return Article(
            public_id=current.public_id,
            title=payload.title,
            description=payload.description or "",
            content=payload.content,
            edited_by=payload.edited_by,
            version=next_version,
            status=target,
            is_editable=False,
            is_submitted=False,
            deny_text=None,
            created_at=now,
            updated_at=now,
        )
