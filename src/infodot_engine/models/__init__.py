"""SQLAlchemy models for the InfoDot interaction engine."""

from .comment import Comment
from .question import Answer, Question
from .reaction import Reaction
from .solution import Solution
from .subject import SubjectRef, SubjectType
from .user import User

__all__ = [
    "Answer", "Question",
    "Comment",
    "Reaction",
    "Solution",
    "SubjectRef", "SubjectType",
    "User",
]
