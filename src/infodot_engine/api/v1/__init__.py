"""Version 1 API endpoints."""

from .endpoints import (
    comments_router,
    questions_router,
    reactions_router,
    search_router,
)

__all__ = [
    "comments_router",
    "questions_router",
    "reactions_router",
    "search_router",
]
