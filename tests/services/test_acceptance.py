"""Tests for answer acceptance and the single-acceptance invariant."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from infodot_engine.core.errors import ConflictTransientError, ForbiddenError, NotFoundError
from infodot_engine.db.session import Base
from infodot_engine.models import Answer, Question, User
from infodot_engine.models.question import QUESTION_STATUS_OPEN, QUESTION_STATUS_SOLVED
from infodot_engine.services.acceptance import AcceptanceCoordinator
from infodot_engine.services.cache import CacheCoordinator, MemoryCacheBackend


@pytest.fixture()
def coordinator(db_session, cache, broadcaster):
    return AcceptanceCoordinator(db_session, cache, broadcaster)


def _accepted_ids(db_session, question_id):
    return list(
        db_session.execute(
            select(Answer.id)
            .where(Answer.question_id == question_id, Answer.is_accepted.is_(True))
            .order_by(Answer.id)
        ).scalars()
    )


def test_accept_switch_and_toggle_off(
    coordinator, db_session, question, answer_one, answer_two, alice
) -> None:
    first = coordinator.accept(question.id, answer_one.id, alice.id)
    assert first.is_accepted is True
    assert _accepted_ids(db_session, question.id) == [answer_one.id]
    assert coordinator.accepted_answer(question.id) == answer_one.id

    second = coordinator.accept(question.id, answer_two.id, alice.id)
    assert second.is_accepted is True
    assert second.previously_accepted_id == answer_one.id
    assert set(second.changed_answer_ids) == {answer_one.id, answer_two.id}
    assert _accepted_ids(db_session, question.id) == [answer_two.id]
    assert coordinator.accepted_answer(question.id) == answer_two.id

    third = coordinator.accept(question.id, answer_two.id, alice.id)
    assert third.is_accepted is False
    assert third.previously_accepted_id is None
    assert third.changed_answer_ids == (answer_two.id,)
    assert _accepted_ids(db_session, question.id) == []
    assert coordinator.accepted_answer(question.id) is None


def test_question_status_follows_acceptance(
    coordinator, db_session, question, answer_one, alice
) -> None:
    coordinator.accept(question.id, answer_one.id, alice.id)
    db_session.refresh(question)
    assert question.status == QUESTION_STATUS_SOLVED

    coordinator.accept(question.id, answer_one.id, alice.id)
    db_session.refresh(question)
    assert question.status == QUESTION_STATUS_OPEN


def test_only_question_author_may_accept(coordinator, question, answer_one, bob) -> None:
    with pytest.raises(ForbiddenError):
        coordinator.accept(question.id, answer_one.id, bob.id)


def test_missing_question_is_not_found(coordinator, answer_one, alice) -> None:
    with pytest.raises(NotFoundError):
        coordinator.accept(9999, answer_one.id, alice.id)


def test_answer_from_other_question_is_not_found(
    coordinator, db_session, question, alice, bob
) -> None:
    other_question = Question(user_id=bob.id, question="Unrelated question")
    db_session.add(other_question)
    db_session.flush()
    stray = Answer(user_id=alice.id, question_id=other_question.id, content="Elsewhere")
    db_session.add(stray)
    db_session.commit()

    with pytest.raises(NotFoundError):
        coordinator.accept(question.id, stray.id, alice.id)


def test_accept_broadcasts_on_question_channel(
    coordinator, question, answer_one, alice, bob, transport
) -> None:
    coordinator.accept(question.id, answer_one.id, alice.id)

    channel, event_name, payload = transport.publish.call_args.args
    assert channel == f"private-question.{question.id}"
    assert event_name == "AnswerWasAccepted"
    assert payload["id"] == answer_one.id
    assert payload["actor_id"] == alice.id
    assert payload["actor_name"] == "Alice"
    assert payload["answer_author_id"] == bob.id


def test_toggle_off_does_not_broadcast(coordinator, question, answer_one, alice, transport) -> None:
    coordinator.accept(question.id, answer_one.id, alice.id)
    transport.publish.reset_mock()

    coordinator.accept(question.id, answer_one.id, alice.id)

    transport.publish.assert_not_called()


def test_accept_logs_at_info(coordinator, question, answer_one, alice, caplog) -> None:
    with caplog.at_level("INFO", logger="infodot_engine.services.acceptance"):
        coordinator.accept(question.id, answer_one.id, alice.id)

    assert any("Answer accepted" in record.getMessage() for record in caplog.records)


def test_concurrent_accepts_keep_single_acceptance(tmp_path) -> None:
    engine = create_engine(
        f"sqlite:///{tmp_path / 'accept.db'}",
        connect_args={"check_same_thread": False, "timeout": 5},
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    with SessionLocal() as setup:
        author = User(name="Author")
        setup.add(author)
        setup.flush()
        target = Question(user_id=author.id, question="Which one is right?")
        setup.add(target)
        setup.flush()
        answers = [
            Answer(user_id=author.id, question_id=target.id, content=f"Answer {index}")
            for index in range(4)
        ]
        setup.add_all(answers)
        setup.commit()
        author_id, question_id = author.id, target.id
        answer_ids = [answer.id for answer in answers]

    cache = CacheCoordinator(MemoryCacheBackend())

    def _accept(answer_id: int) -> bool:
        with SessionLocal() as session:
            try:
                AcceptanceCoordinator(session, cache).accept(question_id, answer_id, author_id)
            except ConflictTransientError:
                return False
            return True

    with ThreadPoolExecutor(max_workers=4) as pool:
        outcomes = list(pool.map(_accept, answer_ids * 3))

    with SessionLocal() as check:
        accepted = check.execute(
            select(func.count(Answer.id)).where(
                Answer.question_id == question_id,
                Answer.is_accepted.is_(True),
            )
        ).scalar_one()

    assert any(outcomes)
    assert accepted <= 1
    engine.dispose()
