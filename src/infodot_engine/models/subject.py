"""Typed references to the entities that can receive reactions and comments."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from infodot_engine.core.errors import ValidationError


class SubjectType(str, Enum):
    """Kinds of entity that can be liked, commented on or accepted."""

    QUESTION = "question"
    ANSWER = "answer"
    SOLUTION = "solution"

    @classmethod
    def parse(cls, raw: str | SubjectType) -> SubjectType:
        """Return the member matching ``raw`` or raise ValidationError."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError as err:
            raise ValidationError(f"Unknown subject type: {raw!r}") from err


@dataclass(frozen=True)
class SubjectRef:
    """Immutable pointer to a single subject row."""

    subject_type: SubjectType
    subject_id: int

    @classmethod
    def of(cls, subject_type: str | SubjectType, subject_id: int) -> SubjectRef:
        return cls(SubjectType.parse(subject_type), int(subject_id))

    @property
    def tag(self) -> str:
        """Cache tag grouping every entry derived from this subject."""
        return f"subject:{self.subject_type.value}:{self.subject_id}"

    @property
    def channel(self) -> str:
        """Private broadcast channel scoped to this subject."""
        return f"private-{self.subject_type.value}.{self.subject_id}"

    def __str__(self) -> str:
        return f"{self.subject_type.value}#{self.subject_id}"
