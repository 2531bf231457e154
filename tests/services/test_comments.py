"""Tests for threaded comments."""

from datetime import UTC, datetime, timedelta

import pytest

from infodot_engine.core.errors import ForbiddenError, NotFoundError, ValidationError
from infodot_engine.models import Comment
from infodot_engine.models.subject import SubjectRef
from infodot_engine.services.comments import CommentStore


@pytest.fixture()
def store(db_session, cache, broadcaster):
    return CommentStore(db_session, cache, broadcaster, broadcast_comments=True, max_length=50)


@pytest.fixture()
def subject(answer_one):
    return SubjectRef.of("answer", answer_one.id)


def _insert(db_session, subject, user_id, body, created_at, parent_id=None):
    comment = Comment(
        user_id=user_id,
        subject_type=subject.subject_type,
        subject_id=subject.subject_id,
        body=body,
        parent_id=parent_id,
        created_at=created_at,
    )
    db_session.add(comment)
    db_session.commit()
    return comment


def test_add_strips_body_and_lists_it(store, subject, bob) -> None:
    comment = store.add(bob.id, subject, "  Tried this, works.  ")

    tree = store.list_for(subject)
    assert comment.body == "Tried this, works."
    assert [node["id"] for node in tree] == [comment.id]
    assert tree[0]["children"] == []


@pytest.mark.parametrize("body", ["", "   ", "\n\t"])
def test_blank_body_is_rejected(store, subject, bob, body) -> None:
    with pytest.raises(ValidationError):
        store.add(bob.id, subject, body)


def test_overlong_body_is_rejected(store, subject, bob) -> None:
    with pytest.raises(ValidationError):
        store.add(bob.id, subject, "x" * 51)


def test_comment_on_missing_subject_is_not_found(store, bob) -> None:
    with pytest.raises(NotFoundError):
        store.add(bob.id, SubjectRef.of("question", 9999), "hello")


def test_reply_must_target_same_subject(store, subject, question, bob) -> None:
    other = store.add(bob.id, SubjectRef.of("question", question.id), "On the question")

    with pytest.raises(NotFoundError):
        store.add(bob.id, subject, "Misplaced reply", parent_id=other.id)


def test_replies_nest_one_level_only(store, subject, alice, bob) -> None:
    parent = store.add(bob.id, subject, "Parent")
    reply = store.add(alice.id, subject, "Reply", parent_id=parent.id)

    with pytest.raises(ValidationError):
        store.add(bob.id, subject, "Too deep", parent_id=reply.id)


def test_tree_is_ordered_at_both_levels(store, db_session, subject, alice, bob) -> None:
    base = datetime(2024, 1, 1, tzinfo=UTC)
    late = _insert(db_session, subject, bob.id, "late", base + timedelta(minutes=5))
    early = _insert(db_session, subject, alice.id, "early", base)
    reply_b = _insert(db_session, subject, bob.id, "reply b", base + timedelta(minutes=3), early.id)
    reply_a = _insert(db_session, subject, alice.id, "reply a", base + timedelta(minutes=1), early.id)

    tree = store.list_for(subject)

    assert [node["id"] for node in tree] == [early.id, late.id]
    assert [node["id"] for node in tree[0]["children"]] == [reply_a.id, reply_b.id]
    assert tree[1]["children"] == []


def test_equal_timestamps_fall_back_to_id(store, db_session, subject, bob) -> None:
    moment = datetime(2024, 1, 1, tzinfo=UTC)
    first = _insert(db_session, subject, bob.id, "one", moment)
    second = _insert(db_session, subject, bob.id, "two", moment)

    assert [node["id"] for node in store.list_for(subject)] == [first.id, second.id]


def test_cached_tree_reflects_new_comment(store, subject, bob) -> None:
    assert store.list_for(subject) == []
    assert store.count_for(subject) == 0

    store.add(bob.id, subject, "First!")

    assert len(store.list_for(subject)) == 1
    assert store.count_for(subject) == 1


def test_remove_cascades_to_replies(store, subject, alice, bob) -> None:
    parent = store.add(bob.id, subject, "Parent")
    store.add(alice.id, subject, "Reply", parent_id=parent.id)
    assert store.count_for(subject) == 2

    store.remove(parent.id, bob.id)

    assert store.list_for(subject) == []
    assert store.count_for(subject) == 0


def test_only_author_can_remove(store, subject, alice, bob) -> None:
    comment = store.add(bob.id, subject, "Mine")

    with pytest.raises(ForbiddenError):
        store.remove(comment.id, alice.id)


def test_removing_twice_is_not_found(store, subject, bob) -> None:
    comment = store.add(bob.id, subject, "Mine")
    store.remove(comment.id, bob.id)

    with pytest.raises(NotFoundError):
        store.remove(comment.id, bob.id)


def test_reply_to_deleted_parent_is_not_found(store, subject, alice, bob) -> None:
    parent = store.add(bob.id, subject, "Parent")
    store.remove(parent.id, bob.id)

    with pytest.raises(NotFoundError):
        store.add(alice.id, subject, "Late reply", parent_id=parent.id)


def test_orphaned_subject_reads_empty(store) -> None:
    orphan = SubjectRef.of("solution", 31337)

    assert store.list_for(orphan) == []
    assert store.count_for(orphan) == 0


def test_broadcast_when_enabled(store, subject, bob, transport) -> None:
    comment = store.add(bob.id, subject, "Broadcast me")

    channel, event_name, payload = transport.publish.call_args.args
    assert channel == f"private-answer.{subject.subject_id}"
    assert event_name == "CommentWasPosted"
    assert payload["id"] == comment.id
    assert payload["excerpt"] == "Broadcast me"


def test_no_broadcast_by_default(db_session, cache, broadcaster, subject, bob, transport) -> None:
    store = CommentStore(db_session, cache, broadcaster, broadcast_comments=False)

    store.add(bob.id, subject, "Quiet")

    transport.publish.assert_not_called()
