"""SQLAlchemy model for solutions (step-by-step guides)."""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from infodot_engine.db.session import Base
from infodot_engine.db.time import utcnow


class Solution(Base):
    """A published solution. Its ordered steps live outside the engine."""

    __tablename__ = "solution"

    searchable_columns: ClassVar[tuple[str, ...]] = (
        "solution_title",
        "solution_description",
        "tags",
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
    )
    solution_title: Mapped[str] = mapped_column(String(255), nullable=False)
    solution_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
