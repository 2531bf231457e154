"""Search endpoints for the InfoDot API."""

from fastapi import APIRouter, Query

from infodot_engine.api.v1.dependencies import EngineDep
from infodot_engine.models.subject import SubjectType
from infodot_engine.schemas.search import SearchResponse

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/{subject_type}", response_model=SearchResponse)
def search(
    subject_type: str,
    engine: EngineDep,
    q: str = Query("", max_length=255, description="Search term"),
    limit: int | None = Query(None, ge=1, le=100),
) -> SearchResponse:
    """Return ids of questions, answers or solutions containing ``q``."""
    kind = SubjectType.parse(subject_type)
    return SearchResponse(subject_type=kind, term=q, ids=list(engine.search(kind, q, limit)))
