"""Version 1 of the article API, mounted under ``/api`` by the app factory."""

from fastapi import APIRouter

from handbook.presentation.api.v1.endpoints import articles, health

router = APIRouter(prefix="/v1")
router.include_router(health.router)
router.include_router(articles.router)
