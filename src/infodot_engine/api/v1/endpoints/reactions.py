"""Reaction endpoints for the InfoDot API."""

from fastapi import APIRouter, status

from infodot_engine.api.v1.dependencies import CurrentUserDep, EngineDep, OptionalUserDep
from infodot_engine.schemas.reaction import (
    ReactionCounts,
    ReactionResponse,
    ReactionToggle,
    ToggleResponse,
)

router = APIRouter(prefix="/reactions", tags=["reactions"])


# Registered before the subject routes so "/{reaction_id}/children" wins the match.
@router.post(
    "/{reaction_id}/children",
    response_model=ReactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def react_to_reaction(
    reaction_id: int,
    payload: ReactionToggle,
    user_id: CurrentUserDep,
    engine: EngineDep,
) -> ReactionResponse:
    """Attach a like or dislike to another user's reaction."""
    child = engine.react_to_reaction(user_id, reaction_id, payload.polarity)
    return ReactionResponse.model_validate(child)


@router.delete("/{reaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_reaction(reaction_id: int, user_id: CurrentUserDep, engine: EngineDep) -> None:
    """Remove one of the caller's reactions."""
    engine.remove_reaction(user_id, reaction_id)


@router.post("/{subject_type}/{subject_id}", response_model=ToggleResponse)
def toggle_reaction(
    subject_type: str,
    subject_id: int,
    payload: ReactionToggle,
    user_id: CurrentUserDep,
    engine: EngineDep,
) -> ToggleResponse:
    """Like or dislike a question, answer or solution.

    Repeating the same reaction removes it; the opposite reaction replaces it.
    """
    result = engine.toggle_reaction(user_id, subject_type, subject_id, payload.polarity)
    return ToggleResponse(**result.as_dict())


@router.get("/{subject_type}/{subject_id}", response_model=ReactionCounts)
def get_reaction_counts(
    subject_type: str,
    subject_id: int,
    user_id: OptionalUserDep,
    engine: EngineDep,
) -> ReactionCounts:
    """Return like/dislike totals, plus the caller's own reaction when authenticated."""
    counts = engine.reaction_counts(subject_type, subject_id)
    user_polarity = (
        engine.user_reaction(user_id, subject_type, subject_id) if user_id is not None else None
    )
    return ReactionCounts(**counts, user_polarity=user_polarity)
