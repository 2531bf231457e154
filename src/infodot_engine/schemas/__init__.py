"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .answer import AcceptanceResponse, AnswerCreate, AnswerResponse
from .comment import CommentCreate, CommentNode, CommentResponse
from .question import QuestionCreate, QuestionResponse, QuestionSummary
from .reaction import ReactionCounts, ReactionResponse, ReactionToggle, ToggleResponse
from .search import SearchResponse

__all__ = [
    "AcceptanceResponse", "AnswerCreate", "AnswerResponse",
    "CommentCreate", "CommentNode", "CommentResponse",
    "QuestionCreate", "QuestionResponse", "QuestionSummary",
    "ReactionCounts", "ReactionResponse", "ReactionToggle", "ToggleResponse",
    "SearchResponse",
]
