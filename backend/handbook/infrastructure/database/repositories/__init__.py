from .article_repository import SQLAlchemyArticleRepository

__all__ = [
    "SQLAlchemyArticleRepository",
]
