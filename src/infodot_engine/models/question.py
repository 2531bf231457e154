"""SQLAlchemy models for questions and their answers."""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from infodot_engine.db.session import Base
from infodot_engine.db.time import utcnow

QUESTION_STATUS_OPEN = 0
QUESTION_STATUS_SOLVED = 1


class Question(Base):
    """A question asked by a user."""

    __tablename__ = "question"
    __table_args__ = (Index("ix_question_user_created", "user_id", "created_at"),)

    searchable_columns: ClassVar[tuple[str, ...]] = ("question", "description")

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )
    question: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # 0 = open, 1 = solved (an answer has been accepted).
    status: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=QUESTION_STATUS_OPEN
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class Answer(Base):
    """An answer to a question; carries the acceptance flag."""

    __tablename__ = "answer"
    __table_args__ = (
        Index("ix_answer_question_created", "question_id", "created_at"),
        # At most one accepted answer per question.
        Index(
            "uq_answer_one_accepted_per_question",
            "question_id",
            unique=True,
            sqlite_where=text("is_accepted = 1"),
            postgresql_where=text("is_accepted"),
        ),
    )

    searchable_columns: ClassVar[tuple[str, ...]] = ("content",)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )
    question_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("question.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
