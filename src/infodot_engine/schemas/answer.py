"""Answer and acceptance Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AnswerCreate(BaseModel):
    """Schema for posting an answer."""

    content: str = Field(..., min_length=1, description="Answer text")


class AnswerResponse(BaseModel):
    id: int
    user_id: int
    question_id: int
    content: str
    is_accepted: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AcceptanceResponse(BaseModel):
    """Outcome of accepting (or un-accepting) an answer."""

    question_id: int
    answer_id: int
    is_accepted: bool
    # The other answer that lost the flag; None on un-accept.
    previously_accepted_id: int | None = None
