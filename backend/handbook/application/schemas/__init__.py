from .article import (
    ArticleRequest,
    ArticleResponse,
    DeclineRequest,
    WorkingCopyResponse,
)

__all__ = [
    "ArticleRequest",
    "ArticleResponse",
    "DeclineRequest",
    "WorkingCopyResponse",
]
