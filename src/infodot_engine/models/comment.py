"""Models for threaded comments on subjects."""

from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from infodot_engine.db.session import Base
from infodot_engine.db.time import utcnow
from infodot_engine.models.subject import SubjectRef, SubjectType


class Comment(Base):
    """Comment on a subject; replies point at their parent via ``parent_id``."""

    __tablename__ = "comment"
    __table_args__ = (
        Index("ix_comment_subject_created", "subject_type", "subject_id", "created_at"),
        Index("ix_comment_parent_id", "parent_id"),
        Index("ix_comment_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )
    subject_type: Mapped[SubjectType] = mapped_column(
        Enum(
            SubjectType,
            native_enum=False,
            length=16,
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
    )
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comment.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def subject(self) -> SubjectRef:
        return SubjectRef(self.subject_type, self.subject_id)
