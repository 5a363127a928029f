from .article_lookup_resolver import ArticleLookupResolver
from .article_workflow_service import ArticleWorkflowService

__all__ = [
    "ArticleLookupResolver",
    "ArticleWorkflowService",
]
