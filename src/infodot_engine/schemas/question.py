"""Question-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class QuestionCreate(BaseModel):
    """Schema for asking a question."""

    question: str = Field(..., min_length=1, max_length=255, description="Question title")
    description: str | None = Field(None, description="Longer problem description")
    tags: str | None = Field(None, max_length=255, description="Comma-separated tags")


class QuestionResponse(BaseModel):
    id: int
    user_id: int
    question: str
    description: str | None
    tags: str | None
    status: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuestionSummary(BaseModel):
    """Listing entry for the recent questions feed."""

    id: int
    user_id: int
    question: str
    excerpt: str
    tags: str | None
    status: int
