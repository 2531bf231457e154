"""Search over questions, answers and solutions.

Queries go to the configured primary index first. When no index is configured,
or the index call fails or times out, a case-insensitive substring match over
the model's searchable columns runs directly against the database.

Whichever path serves a query, every yielded id belongs to a live row with at
least one searchable column containing the term. Primary hits are re-checked
against the database (keeping the index's ranking) to uphold that.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Protocol

import httpx
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from infodot_engine.core.errors import DependencyUnavailableError
from infodot_engine.core.settings import Settings, settings
from infodot_engine.models.subject import SubjectType
from infodot_engine.services.subjects import SubjectModel, model_for

logger = logging.getLogger(__name__)


class SearchIndex(Protocol):
    """Primary index collaborator returning ranked ids."""

    def query(self, subject_type: SubjectType, term: str, limit: int) -> list[int]: ...

    def index(
        self, subject_type: SubjectType, subject_id: int, document: Mapping[str, Any]
    ) -> None: ...

    def close(self) -> None: ...


class MeilisearchIndex:
    """Meilisearch HTTP client; one index per subject type."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        index_prefix: str = "infodot_",
        timeout_seconds: float = 2.0,
        client: httpx.Client | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.index_prefix = index_prefix
        self._client = client or httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
        )

    def index_uid(self, subject_type: SubjectType) -> str:
        return f"{self.index_prefix}{subject_type.value}s"

    def query(self, subject_type: SubjectType, term: str, limit: int) -> list[int]:
        try:
            response = self._client.post(
                f"/indexes/{self.index_uid(subject_type)}/search",
                json={"q": term, "limit": limit, "attributesToRetrieve": ["id"]},
            )
            response.raise_for_status()
            return [int(hit["id"]) for hit in response.json().get("hits", [])]
        except httpx.HTTPError as exc:
            raise DependencyUnavailableError(f"Search index request failed: {exc}") from exc
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise DependencyUnavailableError(f"Malformed search index response: {exc}") from exc

    def index(
        self, subject_type: SubjectType, subject_id: int, document: Mapping[str, Any]
    ) -> None:
        try:
            response = self._client.post(
                f"/indexes/{self.index_uid(subject_type)}/documents",
                json=[{"id": subject_id, **document}],
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DependencyUnavailableError(f"Search indexing failed: {exc}") from exc

    def close(self) -> None:
        self._client.close()


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def searchable_document(row: Any) -> dict[str, Any]:
    """Return the searchable fields of a subject row."""
    return {column: getattr(row, column) for column in type(row).searchable_columns}


class SearchResolver:
    """Resolves search terms to subject ids with a deterministic fallback.

    An empty or whitespace-only term always yields nothing.
    """

    def __init__(
        self,
        db: Session,
        primary: SearchIndex | None = None,
        *,
        limit: int | None = None,
    ) -> None:
        self.db = db
        self.primary = primary
        self.limit = limit or settings.search_result_limit

    def query(
        self,
        subject_type: str | SubjectType,
        term: str,
        limit: int | None = None,
    ) -> Iterator[int]:
        """Return a single-pass iterator over matching ids."""
        kind = SubjectType.parse(subject_type)
        if not term or not term.strip():
            return iter(())
        # Surrounding whitespace is part of the term and must match too.
        needle = term
        max_results = limit or self.limit

        if self.primary is not None:
            try:
                ranked = self.primary.query(kind, needle, max_results)
            except DependencyUnavailableError as exc:
                logger.warning(
                    "Primary search for %s failed, using database fallback: %s", kind.value, exc
                )
            else:
                return self._verified(kind, needle, ranked)

        return self._fallback(kind, needle, max_results)

    def index(
        self,
        subject_type: str | SubjectType,
        subject_id: int,
        document: Mapping[str, Any],
    ) -> bool:
        """Push ``document`` to the primary index. Never raises.

        Returns True when the primary index accepted the document.
        """
        kind = SubjectType.parse(subject_type)
        if self.primary is None:
            return False
        try:
            self.primary.index(kind, subject_id, document)
        except DependencyUnavailableError as exc:
            logger.warning("Indexing %s #%s skipped: %s", kind.value, subject_id, exc)
            return False
        return True

    def index_row(self, subject_type: SubjectType, row: Any) -> bool:
        return self.index(subject_type, row.id, searchable_document(row))

    @staticmethod
    def _matches(model: SubjectModel, needle: str) -> ColumnElement[bool]:
        pattern = f"%{escape_like(needle)}%"
        return or_(
            *(
                getattr(model, column).ilike(pattern, escape="\\")
                for column in model.searchable_columns
            )
        )

    def _verified(
        self, kind: SubjectType, needle: str, ranked: Sequence[int]
    ) -> Iterator[int]:
        ordered = list(dict.fromkeys(ranked))
        if not ordered:
            return
        model = model_for(kind)
        matching = set(
            self.db.execute(
                select(model.id).where(
                    model.id.in_(ordered),
                    model.deleted_at.is_(None),
                    self._matches(model, needle),
                )
            ).scalars()
        )
        for subject_id in ordered:
            if subject_id in matching:
                yield subject_id

    def _fallback(self, kind: SubjectType, needle: str, limit: int) -> Iterator[int]:
        model = model_for(kind)
        yield from self.db.execute(
            select(model.id)
            .where(model.deleted_at.is_(None), self._matches(model, needle))
            .order_by(model.created_at.desc(), model.id.desc())
            .limit(limit)
        ).scalars()


def build_search_index(config: Settings) -> SearchIndex | None:
    """Construct the primary index selected by ``SEARCH_DRIVER``, if any."""
    if config.search_driver == "meilisearch" and config.search_url:
        return MeilisearchIndex(
            config.search_url,
            api_key=config.search_api_key,
            index_prefix=config.search_index_prefix,
            timeout_seconds=config.search_timeout_seconds,
        )
    return None
