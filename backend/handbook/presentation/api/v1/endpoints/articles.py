"""Article workflow endpoints.

Engine exceptions propagate to the handlers in ``presentation.api.errors``,
so the routes only translate between DTOs and the workflow service.
"""

from fastapi import APIRouter, Depends, Query, status

from handbook.application.schemas import (
    ArticleRequest,
    ArticleResponse,
    DeclineRequest,
    WorkingCopyResponse,
)
from handbook.application.services import ArticleWorkflowService
from handbook.domain.entities import Article
from handbook.infrastructure.dependencies import get_current_editor, get_workflow_service

router = APIRouter(prefix="/articles", tags=["Articles"])


def _to_response(article: Article) -> ArticleResponse:
    return ArticleResponse.model_validate(article, from_attributes=True)


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    data: ArticleRequest,
    editor: str | None = Depends(get_current_editor),
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Start editing a new article."""
    article = await service.create_article(data.to_content(editor))
    return _to_response(article)


@router.get("", response_model=list[ArticleResponse])
async def list_articles_by_status(
    status_filter: str = Query("SUBMITTED", alias="status", description="Article status"),
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> list[ArticleResponse]:
    """List every stored revision in one status (submitted ones by default)."""
    articles = await service.list_by_status(status_filter)
    return [_to_response(a) for a in articles]


@router.get("/approved", response_model=list[ArticleResponse])
async def list_approved_articles(
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> list[ArticleResponse]:
    """List the current approved version of every article."""
    articles = await service.list_approved()
    return [_to_response(a) for a in articles]


@router.get("/user/{edited_by}", response_model=list[ArticleResponse])
async def list_articles_by_editor(
    edited_by: str,
    status_filter: str = Query("EDITING", alias="status", description="Article status"),
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> list[ArticleResponse]:
    """List one editor's revisions in a status (working copies by default)."""
    articles = await service.list_by_editor_and_status(edited_by, status_filter)
    return [_to_response(a) for a in articles]


@router.post("/submitting", response_model=ArticleResponse)
async def submit_article(
    data: ArticleRequest,
    editor: str | None = Depends(get_current_editor),
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Submit an article's working copy for review."""
    article = await service.submit_article(data.to_content(editor))
    return _to_response(article)


@router.post("/approval/{public_id}", response_model=ArticleResponse)
async def approve_article(
    public_id: str,
    data: ArticleRequest,
    editor: str | None = Depends(get_current_editor),
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Approve the submitted revision as a new version."""
    article = await service.approve_article(public_id, data.to_content(editor))
    return _to_response(article)


@router.post("/decline/{public_id}/{article_status}", response_model=ArticleResponse)
async def decline_article(
    public_id: str,
    article_status: str,
    data: DeclineRequest,
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Send a submitted revision back to editing with a reason."""
    article = await service.decline_article(public_id, article_status, data.reason)
    return _to_response(article)


@router.put("/{public_id}", response_model=ArticleResponse)
async def update_article(
    public_id: str,
    data: ArticleRequest,
    version: int = Query(..., ge=0, description="Version the edit is based on"),
    is_editable: bool | None = Query(None),
    editor: str | None = Depends(get_current_editor),
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Edit a working copy in place, or branch a new one from an approved version."""
    article = await service.update_article(
        public_id, data.to_content(editor), version, is_editable
    )
    return _to_response(article)


@router.get("/{public_id}", response_model=ArticleResponse)
async def get_article(
    public_id: str,
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Retrieve the revision readers currently see."""
    return _to_response(await service.get_by_public_id(public_id))


@router.get("/{public_id}/latest", response_model=ArticleResponse)
async def get_latest_article(
    public_id: str,
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Retrieve the most recently created revision."""
    return _to_response(await service.get_latest(public_id))


@router.get("/{public_id}/latest-approved", response_model=ArticleResponse)
async def get_latest_approved_article(
    public_id: str,
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Retrieve the approved revision with the highest version."""
    return _to_response(await service.get_latest_approved(public_id))


@router.get("/{public_id}/approved-versions", response_model=list[ArticleResponse])
async def list_approved_versions(
    public_id: str,
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> list[ArticleResponse]:
    """List every approved revision of one article, oldest first."""
    articles = await service.list_approved_versions(public_id)
    return [_to_response(a) for a in articles]


@router.get("/{public_id}/status/{article_status}", response_model=ArticleResponse)
async def get_article_by_status(
    public_id: str,
    article_status: str,
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Retrieve the article's revision in a given status."""
    return _to_response(await service.get_by_status(public_id, article_status))


@router.get("/{public_id}/working-copy", response_model=WorkingCopyResponse)
async def get_working_copy_editor(
    public_id: str,
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> WorkingCopyResponse:
    """Report who edits the open working copy and at which version."""
    info = await service.get_working_copy_editor(public_id)
    return WorkingCopyResponse.model_validate(info, from_attributes=True)


@router.get("/{public_id}/versions/{version}", response_model=ArticleResponse)
async def get_article_version(
    public_id: str,
    version: int,
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Retrieve one specific version."""
    return _to_response(await service.get_by_version(public_id, version))


@router.get("/{public_id}/versions/{version}/{article_status}", response_model=ArticleResponse)
async def get_article_version_with_status(
    public_id: str,
    version: int,
    article_status: str,
    service: ArticleWorkflowService = Depends(get_workflow_service),
) -> ArticleResponse:
    """Retrieve one specific version, only if it is in the given status."""
    return _to_response(
        await service.get_by_version_and_status(public_id, version, article_status)
    )
