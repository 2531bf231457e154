"""Bounded retry of short write transactions under lock contention."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from infodot_engine.core.errors import ConflictTransientError, EngineError, ValidationError
from infodot_engine.core.settings import settings
from infodot_engine.models import Answer, Reaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _race_signatures() -> tuple[str, ...]:
    """Error fragments naming the unique indexes a concurrent writer can trip.

    PostgreSQL reports the index name, SQLite lists the indexed columns.
    """
    signatures: list[str] = []
    for model in (Reaction, Answer):
        table = model.__table__
        for index in table.indexes:
            if not index.unique:
                continue
            columns = ", ".join(f"{table.name}.{column.name}" for column in index.columns)
            signatures.append(f'"{index.name}"')
            signatures.append(f"UNIQUE constraint failed: {columns}")
    return tuple(signatures)


RACE_SIGNATURES: tuple[str, ...] = _race_signatures()


def is_transient(exc: Exception) -> bool:
    """Return True for failures that a retry of the same transaction may clear.

    Lock timeouts and deadlocks surface as OperationalError. Of the integrity
    errors only a lost insert race on the live-reaction or accepted-answer
    index qualifies; foreign key and NOT NULL violations fail the same way
    every time.
    """
    if isinstance(exc, OperationalError):
        return True
    if isinstance(exc, IntegrityError):
        message = str(exc.orig)
        return any(signature in message for signature in RACE_SIGNATURES)
    return False


def run_in_transaction(
    db: Session,
    operation: Callable[[], T],
    *,
    label: str,
    attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    """Run ``operation`` and commit, retrying transient conflicts with backoff.

    Business errors raised by ``operation`` roll back and propagate unchanged.
    Integrity violations that no retry can fix raise ValidationError at once.
    After the retry budget is spent a ConflictTransientError is raised.
    """
    max_attempts = max(1, attempts if attempts is not None else settings.lock_retry_attempts)
    delay = backoff_seconds if backoff_seconds is not None else settings.lock_retry_backoff_seconds

    for attempt in range(1, max_attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except EngineError:
            db.rollback()
            raise
        except (OperationalError, IntegrityError) as exc:
            db.rollback()
            if not is_transient(exc):
                logger.warning("%s rejected by a data constraint: %s", label, exc.orig)
                raise ValidationError(f"{label} violates a data constraint") from exc
            if attempt == max_attempts:
                logger.warning(
                    "%s gave up after %d attempts: %s", label, attempt, exc.__class__.__name__
                )
                raise ConflictTransientError(
                    f"{label} conflicted with a concurrent update; retry the request"
                ) from exc
            logger.debug("%s conflicted (attempt %d), retrying", label, attempt)
            time.sleep(delay * (2 ** (attempt - 1)))
        except Exception:
            db.rollback()
            raise

    raise AssertionError("unreachable")  # pragma: no cover
