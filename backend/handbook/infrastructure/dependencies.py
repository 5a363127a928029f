"""FastAPI dependency injection — wires infrastructure to application layer."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from handbook.config import get_settings
from handbook.application.services import ArticleWorkflowService
from handbook.infrastructure.database.session import get_db_session
from handbook.infrastructure.database.repositories import SQLAlchemyArticleRepository


async def get_workflow_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[ArticleWorkflowService, None]:
    """Provides an ArticleWorkflowService bound to the request's session."""
    repository = SQLAlchemyArticleRepository(session)
    yield ArticleWorkflowService(repository)


def get_current_editor(request: Request) -> str | None:
    """Editor identity supplied by the authentication layer, if any."""
    settings = get_settings()
    editor = request.headers.get(settings.editor_header)
    return editor.strip() if editor else None
