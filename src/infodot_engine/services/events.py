"""Factories for the events the engine broadcasts.

Every payload is a flat mapping carrying at least ``id``, ``excerpt``,
``actor_id``, ``actor_name`` and an ISO-8601 ``timestamp``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Final

from infodot_engine.db.time import isoformat, utcnow
from infodot_engine.models import Answer, Comment, Question, User
from infodot_engine.models.subject import SubjectRef
from infodot_engine.services.broadcast import BroadcastEvent

EXCERPT_LENGTH: Final[int] = 100
QUESTIONS_COLLECTION: Final[str] = "questions"

QUESTION_ASKED: Final[str] = "QuestionWasAsked"
ANSWER_POSTED: Final[str] = "AnswerWasPosted"
ANSWER_ACCEPTED: Final[str] = "AnswerWasAccepted"
REACTION_TOGGLED: Final[str] = "ReactionWasToggled"
COMMENT_POSTED: Final[str] = "CommentWasPosted"


def excerpt(text: str | None, limit: int = EXCERPT_LENGTH) -> str:
    """Trim ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
    if not text:
        return ""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def collection_channel(collection: str) -> str:
    return f"private-{collection}"


def _payload(
    entity_id: int,
    text: str | None,
    actor: User | None,
    actor_id: int,
    timestamp: datetime | None = None,
    **extra: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": entity_id,
        "excerpt": excerpt(text),
        "actor_id": actor_id,
        "actor_name": actor.name if actor is not None else None,
        "timestamp": isoformat(timestamp or utcnow()),
    }
    payload.update(extra)
    return payload


def question_asked(question: Question, actor: User | None) -> BroadcastEvent:
    return BroadcastEvent(
        name=QUESTION_ASKED,
        channel=collection_channel(QUESTIONS_COLLECTION),
        payload=_payload(
            question.id,
            question.question,
            actor,
            question.user_id,
            question.created_at,
            tags=question.tags,
        ),
    )


def answer_posted(answer: Answer, actor: User | None) -> BroadcastEvent:
    return BroadcastEvent(
        name=ANSWER_POSTED,
        channel=SubjectRef.of("question", answer.question_id).channel,
        payload=_payload(
            answer.id,
            answer.content,
            actor,
            answer.user_id,
            answer.created_at,
            question_id=answer.question_id,
            is_accepted=bool(answer.is_accepted),
        ),
    )


def answer_accepted(answer: Answer, actor: User | None, actor_id: int) -> BroadcastEvent:
    """Event for an answer becoming accepted; the actor is the question author."""
    return BroadcastEvent(
        name=ANSWER_ACCEPTED,
        channel=SubjectRef.of("question", answer.question_id).channel,
        payload=_payload(
            answer.id,
            answer.content,
            actor,
            actor_id,
            question_id=answer.question_id,
            answer_author_id=answer.user_id,
            is_accepted=True,
        ),
    )


def reaction_toggled(
    subject: SubjectRef,
    actor: User | None,
    actor_id: int,
    *,
    action: str,
    polarity: bool,
    likes_count: int,
    dislikes_count: int,
    text: str | None = None,
) -> BroadcastEvent:
    """Event for a reaction change; ``text`` is the reacted-to subject's headline."""
    return BroadcastEvent(
        name=REACTION_TOGGLED,
        channel=subject.channel,
        payload=_payload(
            subject.subject_id,
            text,
            actor,
            actor_id,
            subject_type=subject.subject_type.value,
            action=action,
            polarity=polarity,
            likes_count=likes_count,
            dislikes_count=dislikes_count,
        ),
    )


def comment_posted(comment: Comment, actor: User | None) -> BroadcastEvent:
    subject = comment.subject
    return BroadcastEvent(
        name=COMMENT_POSTED,
        channel=subject.channel,
        payload=_payload(
            comment.id,
            comment.body,
            actor,
            comment.user_id,
            comment.created_at,
            subject_type=subject.subject_type.value,
            subject_id=subject.subject_id,
            parent_id=comment.parent_id,
        ),
    )
