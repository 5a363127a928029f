"""Domain entities — pure Python business objects, no framework dependencies."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum


class ArticleStatus(str, Enum):
    """Editorial lifecycle states of a stored article revision."""

    EDITING = "EDITING"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    # Legacy alias of EDITING with deny_text set; never written by the engine.
    DECLINED = "DECLINED"

    @classmethod
    def parse(cls, value: "str | ArticleStatus") -> "ArticleStatus":
        """Resolve a status from its name, case-insensitively.

        Raises ``ValueError`` for unknown values so callers can translate it
        into their own error type.
        """
        if isinstance(value, ArticleStatus):
            return value
        try:
            return cls(value.strip().upper())
        except (AttributeError, ValueError):
            raise ValueError(f"'{value}' is not a valid article status") from None


@dataclass
class ArticleContent:
    """Caller-supplied payload for every state-changing article command."""

    title: str
    content: str
    edited_by: str
    description: str = ""
    public_id: str | None = None
    version: int | None = None
    is_editable: bool | None = None


@dataclass
class Article:
    """Core domain entity: one stored revision of a handbook article.

    All revisions of one logical article share ``public_id``; the pair
    ``(public_id, version)`` is unique. ``revision`` counts successful writes
    to this row and guards conditional updates.
    """

    public_id: str
    title: str
    content: str
    edited_by: str
    description: str = ""
    version: int = 0
    status: ArticleStatus = ArticleStatus.EDITING
    is_editable: bool = False
    is_submitted: bool = False
    deny_text: str | None = None
    internal_id: int | None = None
    revision: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_open(self) -> bool:
        """True while this record is a working copy (not yet approved)."""
        return self.status in (
            ArticleStatus.EDITING,
            ArticleStatus.SUBMITTED,
            ArticleStatus.DECLINED,
        )

    def copy(self, **changes) -> "Article":
        """Return a detached copy with ``changes`` applied and updated_at refreshed."""
        changes.setdefault("updated_at", datetime.now(timezone.utc))
        return replace(self, **changes)

    def with_content(self, payload: ArticleContent, **changes) -> "Article":
        """Return a copy carrying the payload's content fields."""
        return self.copy(
            title=payload.title,
            description=payload.description or "",
            content=payload.content,
            edited_by=payload.edited_by,
            **changes,
        )


@dataclass(frozen=True)
class WorkingCopyInfo:
    """Who is editing an article's open working copy, and at which version."""

    public_id: str
    edited_by: str
    version: int
