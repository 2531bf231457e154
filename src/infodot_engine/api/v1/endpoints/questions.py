"""Question and answer endpoints for the InfoDot API."""

from fastapi import APIRouter, Query, status

from infodot_engine.api.v1.dependencies import CurrentUserDep, EngineDep
from infodot_engine.schemas.answer import AcceptanceResponse, AnswerCreate, AnswerResponse
from infodot_engine.schemas.question import QuestionCreate, QuestionResponse, QuestionSummary

router = APIRouter(prefix="/questions", tags=["questions"])


@router.get("/", response_model=list[QuestionSummary])
def list_recent_questions(
    engine: EngineDep,
    limit: int = Query(20, ge=1, le=100),
) -> list[QuestionSummary]:
    """Return the newest questions."""
    return [QuestionSummary(**row) for row in engine.recent_questions(limit)]


@router.post("/", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
def ask_question(
    payload: QuestionCreate,
    user_id: CurrentUserDep,
    engine: EngineDep,
) -> QuestionResponse:
    question = engine.ask_question(
        user_id, payload.question, description=payload.description, tags=payload.tags
    )
    return QuestionResponse.model_validate(question)


@router.post(
    "/{question_id}/answers",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
def post_answer(
    question_id: int,
    payload: AnswerCreate,
    user_id: CurrentUserDep,
    engine: EngineDep,
) -> AnswerResponse:
    answer = engine.post_answer(user_id, question_id, payload.content)
    return AnswerResponse.model_validate(answer)


@router.post(
    "/{question_id}/answers/{answer_id}/accept",
    response_model=AcceptanceResponse,
)
def accept_answer(
    question_id: int,
    answer_id: int,
    user_id: CurrentUserDep,
    engine: EngineDep,
) -> AcceptanceResponse:
    """Accept an answer, or un-accept it if it is already the accepted one.

    Only the author of the question may do this.
    """
    result = engine.accept_answer(user_id, question_id, answer_id)
    return AcceptanceResponse(
        question_id=result.question_id,
        answer_id=result.answer_id,
        is_accepted=result.is_accepted,
        previously_accepted_id=result.previously_accepted_id,
    )
