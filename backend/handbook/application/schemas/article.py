"""Pydantic DTOs (Data Transfer Objects) for the Article feature.

Blank-field checks are left to the workflow engine so that HTTP callers and
in-process callers get the same ValidationError; the DTOs only bound lengths.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from handbook.domain.entities import ArticleContent, ArticleStatus


class ArticleRequest(BaseModel):
    """Schema for every state-changing article command."""

    public_id: str | None = Field(None, max_length=36)
    title: str = Field("", max_length=255, examples=["Travel expenses"])
    description: str = Field("", max_length=500, examples=["How to claim travel costs"])
    content: str = Field("", examples=["Receipts must be submitted within 30 days."])
    edited_by: str | None = Field(None, max_length=255)
    version: int | None = Field(None, ge=0)
    is_editable: bool | None = None

    def to_content(self, editor: str | None = None) -> ArticleContent:
        """Map to the domain payload, falling back to the authenticated editor."""
        return ArticleContent(
            public_id=self.public_id,
            title=self.title,
            description=self.description,
            content=self.content,
            edited_by=self.edited_by or editor or "",
            version=self.version,
            is_editable=self.is_editable,
        )


class DeclineRequest(BaseModel):
    """Schema for declining a submitted article."""

    reason: str = Field(..., max_length=2000, examples=["Please cite the travel policy."])


class ArticleResponse(BaseModel):
    """Schema returned to the client."""

    public_id: str
    title: str
    description: str
    content: str
    version: int
    status: ArticleStatus
    edited_by: str
    is_editable: bool
    is_submitted: bool
    deny_text: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class WorkingCopyResponse(BaseModel):
    """Who is currently editing an article, and which version."""

    public_id: str
    edited_by: str
    version: int

    model_config = {"from_attributes": True}
