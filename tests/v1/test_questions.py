# tests/v1/test_questions.py
"""Tests for question, answer and acceptance endpoints."""

from fastapi import status

from infodot_engine.core.errors import ConflictTransientError


def _accept(client, headers, question_id, answer_id):
    return client.post(
        f"/api/v1/questions/{question_id}/answers/{answer_id}/accept", headers=headers
    )


def test_accept_switch_and_toggle_off(
    client, auth_headers, question, answer_one, answer_two, alice
) -> None:
    headers = auth_headers(alice)

    first = _accept(client, headers, question.id, answer_one.id)
    assert first.status_code == status.HTTP_200_OK
    assert first.json()["is_accepted"] is True

    second = _accept(client, headers, question.id, answer_two.id)
    assert second.json() == {
        "question_id": question.id,
        "answer_id": answer_two.id,
        "is_accepted": True,
        "previously_accepted_id": answer_one.id,
    }

    third = _accept(client, headers, question.id, answer_two.id)
    assert third.json()["is_accepted"] is False
    assert third.json()["previously_accepted_id"] is None


def test_non_author_cannot_accept(client, auth_headers, question, answer_one, bob) -> None:
    response = _accept(client, auth_headers(bob), question.id, answer_one.id)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["code"] == "forbidden"


def test_accepting_foreign_answer_is_not_found(client, auth_headers, question, alice) -> None:
    response = _accept(client, auth_headers(alice), question.id, 31337)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_conflict_is_marked_retryable(
    client, auth_headers, question, answer_one, alice, mocker
) -> None:
    mocker.patch(
        "infodot_engine.services.engine.AcceptanceCoordinator.accept",
        side_effect=ConflictTransientError("answer acceptance conflicted"),
    )

    response = _accept(client, auth_headers(alice), question.id, answer_one.id)

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["retryable"] is True


def test_ask_and_list_questions(client, auth_headers, alice) -> None:
    created = client.post(
        "/api/v1/questions/",
        json={"question": "Laptop will not charge", "tags": "hardware"},
        headers=auth_headers(alice),
    )
    assert created.status_code == status.HTTP_201_CREATED
    assert created.json()["status"] == 0

    listing = client.get("/api/v1/questions/").json()
    assert [row["question"] for row in listing] == ["Laptop will not charge"]


def test_post_answer(client, auth_headers, question, bob) -> None:
    response = client.post(
        f"/api/v1/questions/{question.id}/answers",
        json={"content": "Unplug it for ten seconds."},
        headers=auth_headers(bob),
    )
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["question_id"] == question.id
    assert body["is_accepted"] is False
