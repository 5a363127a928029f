"""SQLAlchemy ORM model for the Article entity."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from handbook.infrastructure.database.base import Base


# At most one working copy (EDITING, SUBMITTED or legacy DECLINED) per article
_OPEN_COPY = text("status IN ('EDITING', 'SUBMITTED', 'DECLINED')")


class ArticleModel(Base):
    """ORM model — maps to the 'articles' table, one row per stored revision."""

    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    public_id: Mapped[str] = mapped_column(String(36), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    edited_by: Mapped[str] = mapped_column(String(255), nullable=False)
    is_editable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_submitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deny_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("public_id", "version", name="uq_articles_public_id_version"),
        Index("ix_articles_public_id_status", "public_id", "status"),
        Index("ix_articles_editor_status", "edited_by", "status"),
        Index(
            "uq_articles_open_copy",
            "public_id",
            unique=True,
            sqlite_where=_OPEN_COPY,
            postgresql_where=_OPEN_COPY,
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<ArticleModel(id={self.id}, public_id='{self.public_id}', "
            f"version={self.version}, status='{self.status}')>"
        )
