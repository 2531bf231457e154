"""Database engine, session factory and the declarative base."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from infodot_engine.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Model modules register their tables on Base.metadata when imported.
import infodot_engine.models  # noqa: E402,F401


def enforce_sqlite_foreign_keys(bind: Engine) -> Engine:
    """Turn on foreign key checks for every SQLite connection of ``bind``.

    SQLite ignores REFERENCES clauses unless the pragma is set per connection.
    Other dialects are returned untouched.
    """
    if bind.dialect.name != "sqlite":
        return bind

    @event.listens_for(bind, "connect")
    def _set_pragma(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    return bind


engine = enforce_sqlite_foreign_keys(
    create_engine(
        settings.database_url,
        pool_pre_ping=True,
        echo=settings.sql_debug,
    )
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session; rolled back if the request fails midway."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
