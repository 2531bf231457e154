"""Accepted-answer bookkeeping.

For any question at most one answer carries ``is_accepted``. Accepting runs in
a single transaction that first locks the question row, then clears the flag on
every other answer, then sets it on the target. Concurrent accepts on the same
question therefore serialise on the question lock; the partial unique index on
``answer.question_id`` backs the rule at the storage layer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from infodot_engine.core.errors import ForbiddenError, NotFoundError
from infodot_engine.models import Answer, Question, User
from infodot_engine.models.question import QUESTION_STATUS_OPEN, QUESTION_STATUS_SOLVED
from infodot_engine.models.subject import SubjectRef, SubjectType
from infodot_engine.services import events
from infodot_engine.services.broadcast import EventBroadcaster
from infodot_engine.services.cache import QUESTION_LIST_TAG, CacheCoordinator
from infodot_engine.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcceptanceResult:
    """Outcome of an accept toggle.

    ``previously_accepted_id`` names the other answer that lost the flag when
    ``answer_id`` became accepted. It is None when no other answer held it and
    on un-accept, where ``changed_answer_ids`` holds the target alone.
    """

    question_id: int
    answer_id: int
    is_accepted: bool
    previously_accepted_id: int | None
    changed_answer_ids: tuple[int, ...]


class AcceptanceCoordinator:
    """Owns the ``is_accepted`` flag on answers."""

    def __init__(
        self,
        db: Session,
        cache: CacheCoordinator,
        broadcaster: EventBroadcaster | None = None,
        *,
        cache_ttl: int | None = None,
    ) -> None:
        self.db = db
        self.cache = cache
        self.broadcaster = broadcaster
        self.cache_ttl = cache_ttl

    def accept(self, question_id: int, answer_id: int, requesting_user_id: int) -> AcceptanceResult:
        """Toggle acceptance of ``answer_id`` on ``question_id``.

        Accepting an answer un-accepts any other; calling again on the accepted
        answer un-accepts it.

        Raises:
            NotFoundError: The question is missing or the answer is not one of its answers.
            ForbiddenError: The requester did not ask the question.
            ConflictTransientError: Lock contention outlived the retry budget.
        """

        def _apply() -> AcceptanceResult:
            question = self.db.execute(
                select(Question)
                .where(Question.id == question_id, Question.deleted_at.is_(None))
                .with_for_update()
            ).scalars().first()
            if question is None:
                raise NotFoundError("Question not found")
            if question.user_id != requesting_user_id:
                raise ForbiddenError("Only the question author can accept answers")

            answer = self.db.execute(
                select(Answer).where(
                    Answer.id == answer_id,
                    Answer.question_id == question_id,
                    Answer.deleted_at.is_(None),
                )
            ).scalars().first()
            if answer is None:
                raise NotFoundError("Answer not found for this question")

            if answer.is_accepted:
                answer.is_accepted = False
                question.status = QUESTION_STATUS_OPEN
                self.db.flush()
                return AcceptanceResult(
                    question_id=question_id,
                    answer_id=answer_id,
                    is_accepted=False,
                    previously_accepted_id=None,
                    changed_answer_ids=(answer_id,),
                )

            previously = list(
                self.db.execute(
                    select(Answer.id).where(
                        Answer.question_id == question_id,
                        Answer.id != answer_id,
                        Answer.is_accepted.is_(True),
                    )
                ).scalars()
            )
            # Clear the others before setting the target.
            self.db.execute(
                update(Answer)
                .where(
                    Answer.question_id == question_id,
                    Answer.id != answer_id,
                    Answer.is_accepted.is_(True),
                )
                .values(is_accepted=False)
            )
            answer.is_accepted = True
            question.status = QUESTION_STATUS_SOLVED
            self.db.flush()
            return AcceptanceResult(
                question_id=question_id,
                answer_id=answer_id,
                is_accepted=True,
                previously_accepted_id=previously[0] if previously else None,
                changed_answer_ids=(*previously, answer_id),
            )

        result = run_in_transaction(self.db, _apply, label="answer acceptance")

        # The question listing carries the solved/open status.
        self.cache.invalidate(
            QUESTION_LIST_TAG,
            SubjectRef(SubjectType.QUESTION, question_id).tag,
            *(SubjectRef(SubjectType.ANSWER, changed).tag for changed in result.changed_answer_ids),
        )

        if result.is_accepted:
            answer = self.db.get(Answer, answer_id)
            logger.info(
                "Answer accepted answer_id=%s question_id=%s user_id=%s",
                answer_id,
                question_id,
                answer.user_id if answer is not None else None,
            )
            if self.broadcaster is not None and answer is not None:
                self.broadcaster.publish(
                    events.answer_accepted(
                        answer,
                        self.db.get(User, requesting_user_id),
                        requesting_user_id,
                    )
                )
        return result

    def accepted_answer(self, question_id: int) -> int | None:
        """Return the id of the accepted answer for ``question_id``, if any."""

        def _compute() -> int | None:
            return self.db.execute(
                select(Answer.id).where(
                    Answer.question_id == question_id,
                    Answer.is_accepted.is_(True),
                    Answer.deleted_at.is_(None),
                )
            ).scalars().first()

        question = SubjectRef(SubjectType.QUESTION, question_id)
        key = f"answers:accepted:{question_id}"
        return self.cache.remember(key, [question.tag], self.cache_ttl, _compute)
