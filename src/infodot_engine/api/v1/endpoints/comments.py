"""Comment endpoints for the InfoDot API."""

from fastapi import APIRouter, status

from infodot_engine.api.v1.dependencies import CurrentUserDep, EngineDep
from infodot_engine.schemas.comment import CommentCreate, CommentNode, CommentResponse

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "/{subject_type}/{subject_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    subject_type: str,
    subject_id: int,
    payload: CommentCreate,
    user_id: CurrentUserDep,
    engine: EngineDep,
) -> CommentResponse:
    """Post a comment, or a reply when ``parent_id`` is set."""
    comment = engine.add_comment(
        user_id, subject_type, subject_id, payload.body, payload.parent_id
    )
    return CommentResponse.model_validate(comment)


@router.get("/{subject_type}/{subject_id}", response_model=list[CommentNode])
def list_comments(subject_type: str, subject_id: int, engine: EngineDep) -> list[CommentNode]:
    """Return the comment thread for a subject, oldest first."""
    thread = engine.list_comments(subject_type, subject_id)
    return [CommentNode.model_validate(node) for node in thread]


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_comment(comment_id: int, user_id: CurrentUserDep, engine: EngineDep) -> None:
    engine.remove_comment(user_id, comment_id)
