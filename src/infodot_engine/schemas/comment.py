"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from infodot_engine.models.subject import SubjectType


class CommentCreate(BaseModel):
    """Schema for posting a comment or a reply."""

    body: str = Field(..., min_length=1, description="Comment text")
    parent_id: int | None = Field(None, description="Comment being replied to")


class CommentResponse(BaseModel):
    """Schema for a freshly stored comment."""

    id: int
    user_id: int
    subject_type: SubjectType
    subject_id: int
    body: str
    parent_id: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentNode(BaseModel):
    """A comment in a thread, with its replies nested under ``children``."""

    id: int
    user_id: int
    body: str
    parent_id: int | None
    created_at: datetime
    children: list[CommentNode] = Field(default_factory=list)
