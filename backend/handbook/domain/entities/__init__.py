from .article import Article, ArticleContent, ArticleStatus, WorkingCopyInfo

__all__ = [
    "Article",
    "ArticleContent",
    "ArticleStatus",
    "WorkingCopyInfo",
]
