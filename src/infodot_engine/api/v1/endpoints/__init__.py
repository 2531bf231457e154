"""API endpoint modules for version 1."""

from .comments import router as comments_router
from .questions import router as questions_router
from .reactions import router as reactions_router
from .search import router as search_router

__all__ = [
    "comments_router",
    "questions_router",
    "reactions_router",
    "search_router",
]
