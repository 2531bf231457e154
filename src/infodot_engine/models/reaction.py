"""Models capturing like/dislike reactions on subjects."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, text
from sqlalchemy.orm import Mapped, mapped_column

from infodot_engine.db.session import Base
from infodot_engine.db.time import utcnow
from infodot_engine.models.subject import SubjectRef, SubjectType

_LIVE_TOP_LEVEL = "parent_id IS NULL AND deleted_at IS NULL"


class Reaction(Base):
    """Per-user like (polarity=True) or dislike (polarity=False) on a subject.

    Rows with ``parent_id`` set are meta-reactions on another reaction and never
    count toward the subject's totals.
    """

    __tablename__ = "reaction"
    __table_args__ = (
        Index("ix_reaction_subject", "subject_type", "subject_id"),
        Index("ix_reaction_parent_id", "parent_id"),
        # One live top-level reaction per user and subject.
        Index(
            "uq_reaction_user_subject_top_level",
            "user_id",
            "subject_type",
            "subject_id",
            unique=True,
            sqlite_where=text(_LIVE_TOP_LEVEL),
            postgresql_where=text(_LIVE_TOP_LEVEL),
        ),
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
    polarity: Mapped[bool] = mapped_column(Boolean, nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("reaction.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def subject(self) -> SubjectRef:
        return SubjectRef(self.subject_type, self.subject_id)
