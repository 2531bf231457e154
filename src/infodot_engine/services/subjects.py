"""Resolution of SubjectRef values to their concrete ORM models."""

from __future__ import annotations

from typing import Final

from sqlalchemy import select
from sqlalchemy.orm import Session

from infodot_engine.core.errors import NotFoundError
from infodot_engine.models import Answer, Question, Solution
from infodot_engine.models.subject import SubjectRef, SubjectType

SubjectModel = type[Question] | type[Answer] | type[Solution]

SUBJECT_MODELS: Final[dict[SubjectType, SubjectModel]] = {
    SubjectType.QUESTION: Question,
    SubjectType.ANSWER: Answer,
    SubjectType.SOLUTION: Solution,
}


def model_for(subject_type: SubjectType) -> SubjectModel:
    """Return the ORM class backing ``subject_type``."""
    return SUBJECT_MODELS[subject_type]


def find_subject(db: Session, subject: SubjectRef) -> Question | Answer | Solution | None:
    """Return the live (non-deleted) row for ``subject`` or None."""
    model = model_for(subject.subject_type)
    return db.execute(
        select(model).where(model.id == subject.subject_id, model.deleted_at.is_(None))
    ).scalars().first()


def subject_exists(db: Session, subject: SubjectRef) -> bool:
    """Return True if ``subject`` currently references a live row."""
    return find_subject(db, subject) is not None


def require_subject(db: Session, subject: SubjectRef) -> Question | Answer | Solution:
    """Return the live row for ``subject`` or raise NotFoundError."""
    row = find_subject(db, subject)
    if row is None:
        raise NotFoundError(f"{subject.subject_type.value.capitalize()} not found")
    return row


def subject_text(row: Question | Answer | Solution | None) -> str | None:
    """Return the headline of a subject row: the title, or the body for answers."""
    if row is None:
        return None
    return getattr(row, type(row).searchable_columns[0])
