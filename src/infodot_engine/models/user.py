"""SQLAlchemy model for platform users."""

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from infodot_engine.db.session import Base


class User(Base):
    """Registered user; only the fields the engine reads are mapped."""

    __tablename__ = "user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True, unique=True)
