"""Reaction-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from infodot_engine.models.subject import SubjectType


class ReactionToggle(BaseModel):
    """Schema for toggling a like or dislike."""

    polarity: bool = Field(..., description="true for like, false for dislike")


class ToggleResponse(BaseModel):
    """Outcome of a toggle with the subject's fresh totals."""

    action: Literal["added", "updated", "removed"]
    likes_count: int
    dislikes_count: int


class ReactionCounts(BaseModel):
    """Like/dislike totals for a subject."""

    likes_count: int
    dislikes_count: int
    user_polarity: bool | None = Field(
        None, description="The caller's current reaction, if any"
    )


class ReactionResponse(BaseModel):
    """Schema for a stored reaction."""

    id: int
    user_id: int
    subject_type: SubjectType
    subject_id: int
    polarity: bool
    parent_id: int | None

    model_config = ConfigDict(from_attributes=True)
