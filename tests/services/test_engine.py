"""Tests for the per-request engine facade."""

from unittest.mock import MagicMock

import pytest

from infodot_engine.core.errors import NotFoundError, ValidationError
from infodot_engine.models.question import QUESTION_STATUS_SOLVED
from infodot_engine.models.subject import SubjectType
from infodot_engine.services.engine import InteractionEngine


def test_unknown_subject_type_is_rejected(interaction_engine, bob) -> None:
    with pytest.raises(ValidationError):
        interaction_engine.toggle_reaction(bob.id, "poll", 1, True)


def test_toggle_and_counts_by_type_name(interaction_engine, answer_one, alice) -> None:
    result = interaction_engine.toggle_reaction(alice.id, "Answer", answer_one.id, False)

    assert result.as_dict() == {"action": "added", "likes_count": 0, "dislikes_count": 1}
    assert interaction_engine.reaction_counts("answer", answer_one.id) == {
        "likes_count": 0,
        "dislikes_count": 1,
    }
    assert interaction_engine.user_reaction(alice.id, "answer", answer_one.id) is False


def test_comment_round_trip(interaction_engine, solution, alice) -> None:
    comment = interaction_engine.add_comment(alice.id, "solution", solution.id, "Worked for me")
    reply = interaction_engine.add_comment(
        alice.id, "solution", solution.id, "Update: still works", parent_id=comment.id
    )

    tree = interaction_engine.list_comments("solution", solution.id)

    assert [node["id"] for node in tree] == [comment.id]
    assert [node["id"] for node in tree[0]["children"]] == [reply.id]
    assert interaction_engine.comment_count("solution", solution.id) == 2

    interaction_engine.remove_comment(alice.id, comment.id)
    assert interaction_engine.list_comments("solution", solution.id) == []


def test_accept_answer_marks_question_solved(
    interaction_engine, db_session, question, answer_one, alice
) -> None:
    result = interaction_engine.accept_answer(alice.id, question.id, answer_one.id)

    db_session.refresh(question)
    assert result.is_accepted is True
    assert question.status == QUESTION_STATUS_SOLVED
    assert interaction_engine.accepted_answer(question.id) == answer_one.id


def test_ask_question_refreshes_listing_and_broadcasts(
    interaction_engine, question, alice, transport
) -> None:
    before = interaction_engine.recent_questions()
    assert [row["id"] for row in before] == [question.id]

    asked = interaction_engine.ask_question(
        alice.id, "  Why is my Wi-Fi slow?  ", description="Only in the evening.", tags="wifi"
    )

    assert asked.question == "Why is my Wi-Fi slow?"
    assert [row["id"] for row in interaction_engine.recent_questions()] == [asked.id, question.id]
    channel, event_name, payload = transport.publish.call_args.args
    assert (channel, event_name) == ("private-questions", "QuestionWasAsked")
    assert payload["id"] == asked.id


def test_listing_reflects_acceptance_status(
    interaction_engine, question, answer_one, alice
) -> None:
    assert interaction_engine.recent_questions()[0]["status"] == 0

    interaction_engine.accept_answer(alice.id, question.id, answer_one.id)

    assert interaction_engine.recent_questions()[0]["status"] == QUESTION_STATUS_SOLVED


@pytest.mark.parametrize("title", ["", "   ", "x" * 256])
def test_ask_question_validates_title(interaction_engine, alice, title) -> None:
    with pytest.raises(ValidationError):
        interaction_engine.ask_question(alice.id, title)


def test_post_answer_broadcasts_on_question_channel(
    interaction_engine, question, bob, transport
) -> None:
    answer = interaction_engine.post_answer(bob.id, question.id, "Try a different channel.")

    channel, event_name, payload = transport.publish.call_args.args
    assert channel == f"private-question.{question.id}"
    assert event_name == "AnswerWasPosted"
    assert payload["id"] == answer.id
    assert payload["actor_name"] == "Bob"


def test_post_answer_to_missing_question(interaction_engine, bob) -> None:
    with pytest.raises(NotFoundError):
        interaction_engine.post_answer(bob.id, 4040, "Anyone?")


def test_new_content_is_pushed_to_search_index(db_session, cache, question, bob) -> None:
    index = MagicMock()
    engine = InteractionEngine(db_session, cache, None, index)

    answer = engine.post_answer(bob.id, question.id, "Update the firmware.")

    index.index.assert_called_once_with(
        SubjectType.ANSWER, answer.id, {"content": "Update the firmware."}
    )


def test_search_delegates_to_resolver(interaction_engine, question) -> None:
    assert list(interaction_engine.search("question", "ROUTER password")) == [question.id]
    assert list(interaction_engine.search("question", "")) == []
