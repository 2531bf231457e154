"""Search Pydantic schemas."""

from pydantic import BaseModel

from infodot_engine.models.subject import SubjectType


class SearchResponse(BaseModel):
    """Ids of matching subjects in rank order."""

    subject_type: SubjectType
    term: str
    ids: list[int]
