"""Per-request facade over the interaction engine components.

Raw ``subject_type`` strings coming from callers are parsed here; everything
below this layer works with ``SubjectRef`` values.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from infodot_engine.core.errors import ValidationError
from infodot_engine.models import Answer, Comment, Question, Reaction, User
from infodot_engine.models.subject import SubjectRef, SubjectType
from infodot_engine.services import events
from infodot_engine.services.acceptance import AcceptanceCoordinator, AcceptanceResult
from infodot_engine.services.broadcast import EventBroadcaster
from infodot_engine.services.cache import QUESTION_LIST_TAG, CacheCoordinator
from infodot_engine.services.comments import CommentNode, CommentStore
from infodot_engine.services.interactions import InteractionStore, ToggleResult
from infodot_engine.services.search import SearchIndex, SearchResolver
from infodot_engine.services.subjects import require_subject
from infodot_engine.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

QUESTION_TITLE_MAX_LENGTH = 255
RECENT_QUESTIONS_LIMIT = 20


class InteractionEngine:
    """Entry point for every engine command.

    Built per request from a Session plus the process-wide cache, broadcaster
    and search index.
    """

    def __init__(
        self,
        db: Session,
        cache: CacheCoordinator,
        broadcaster: EventBroadcaster | None = None,
        search_index: SearchIndex | None = None,
    ) -> None:
        self.db = db
        self.cache = cache
        self.broadcaster = broadcaster
        self.reactions = InteractionStore(db, cache, broadcaster)
        self.comments = CommentStore(db, cache, broadcaster)
        self.acceptance = AcceptanceCoordinator(db, cache, broadcaster)
        self.resolver = SearchResolver(db, search_index)

    # --- Reactions --------------------------------------------------------------

    def toggle_reaction(
        self,
        user_id: int,
        subject_type: str | SubjectType,
        subject_id: int,
        polarity: bool,
    ) -> ToggleResult:
        return self.reactions.toggle(user_id, SubjectRef.of(subject_type, subject_id), polarity)

    def reaction_counts(self, subject_type: str | SubjectType, subject_id: int) -> dict[str, int]:
        return self.reactions.counts(SubjectRef.of(subject_type, subject_id))

    def user_reaction(
        self, user_id: int, subject_type: str | SubjectType, subject_id: int
    ) -> bool | None:
        return self.reactions.user_reaction(user_id, SubjectRef.of(subject_type, subject_id))

    def react_to_reaction(self, user_id: int, reaction_id: int, polarity: bool) -> Reaction:
        return self.reactions.add_child(reaction_id, user_id, polarity)

    def remove_reaction(self, user_id: int, reaction_id: int) -> None:
        self.reactions.remove(reaction_id, user_id)

    # --- Comments ---------------------------------------------------------------

    def add_comment(
        self,
        user_id: int,
        subject_type: str | SubjectType,
        subject_id: int,
        body: str,
        parent_id: int | None = None,
    ) -> Comment:
        return self.comments.add(user_id, SubjectRef.of(subject_type, subject_id), body, parent_id)

    def list_comments(self, subject_type: str | SubjectType, subject_id: int) -> list[CommentNode]:
        return self.comments.list_for(SubjectRef.of(subject_type, subject_id))

    def comment_count(self, subject_type: str | SubjectType, subject_id: int) -> int:
        return self.comments.count_for(SubjectRef.of(subject_type, subject_id))

    def remove_comment(self, user_id: int, comment_id: int) -> None:
        self.comments.remove(comment_id, user_id)

    # --- Answers ----------------------------------------------------------------

    def accept_answer(self, user_id: int, question_id: int, answer_id: int) -> AcceptanceResult:
        return self.acceptance.accept(question_id, answer_id, user_id)

    def accepted_answer(self, question_id: int) -> int | None:
        return self.acceptance.accepted_answer(question_id)

    # --- Search -----------------------------------------------------------------

    def search(
        self, subject_type: str | SubjectType, term: str, limit: int | None = None
    ) -> Iterator[int]:
        return self.resolver.query(subject_type, term, limit)

    # --- Questions --------------------------------------------------------------

    def ask_question(
        self,
        user_id: int,
        question: str,
        description: str | None = None,
        tags: str | None = None,
    ) -> Question:
        """Store a new question, then refresh listings, notify and index it."""
        title = (question or "").strip()
        if not title:
            raise ValidationError("Question is required")
        if len(title) > QUESTION_TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Question cannot exceed {QUESTION_TITLE_MAX_LENGTH} characters"
            )

        def _apply() -> Question:
            row = Question(user_id=user_id, question=title, description=description, tags=tags)
            self.db.add(row)
            self.db.flush()
            return row

        row = run_in_transaction(self.db, _apply, label="question")
        self.cache.invalidate(QUESTION_LIST_TAG)
        logger.info("Question asked question_id=%s user_id=%s", row.id, user_id)

        if self.broadcaster is not None:
            self.broadcaster.publish(events.question_asked(row, self.db.get(User, user_id)))
        self.resolver.index_row(SubjectType.QUESTION, row)
        return row

    def post_answer(self, user_id: int, question_id: int, content: str) -> Answer:
        """Store an answer on a live question and notify its subscribers."""
        text = (content or "").strip()
        if not text:
            raise ValidationError("Answer content is required")
        question = SubjectRef(SubjectType.QUESTION, question_id)

        def _apply() -> Answer:
            require_subject(self.db, question)
            row = Answer(user_id=user_id, question_id=question_id, content=text)
            self.db.add(row)
            self.db.flush()
            return row

        row = run_in_transaction(self.db, _apply, label="answer")
        self.cache.invalidate(question.tag)

        if self.broadcaster is not None:
            self.broadcaster.publish(events.answer_posted(row, self.db.get(User, user_id)))
        self.resolver.index_row(SubjectType.ANSWER, row)
        return row

    def recent_questions(self, limit: int = RECENT_QUESTIONS_LIMIT) -> list[dict[str, Any]]:
        """Return the newest live questions, cached until the next question is asked."""

        def _compute() -> list[dict[str, Any]]:
            rows = self.db.execute(
                select(Question)
                .where(Question.deleted_at.is_(None))
                .order_by(Question.created_at.desc(), Question.id.desc())
                .limit(limit)
            ).scalars()
            return [
                {
                    "id": row.id,
                    "user_id": row.user_id,
                    "question": row.question,
                    "excerpt": events.excerpt(row.description),
                    "tags": row.tags,
                    "status": row.status,
                }
                for row in rows
            ]

        return self.cache.remember(
            f"questions:recent:{limit}", [QUESTION_LIST_TAG], None, _compute
        )
