# tests/v1/test_dependencies.py
"""Tests for bearer token decoding."""

import pytest
from fastapi import HTTPException
from jose import jwt

from infodot_engine.api.v1.dependencies import decode_user_id
from infodot_engine.core.settings import settings


def test_decode_user_id_reads_sub_claim() -> None:
    token = jwt.encode({"sub": "17"}, settings.secret_key, algorithm=settings.jwt_algorithm)
    assert decode_user_id(token) == 17


@pytest.mark.parametrize(
    "claims",
    [{}, {"sub": "not-a-number"}],
)
def test_decode_user_id_rejects_bad_subjects(claims) -> None:
    token = jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)
    with pytest.raises(HTTPException) as excinfo:
        decode_user_id(token)
    assert excinfo.value.status_code == 401


def test_decode_user_id_rejects_wrong_key() -> None:
    token = jwt.encode({"sub": "1"}, "some-other-secret", algorithm=settings.jwt_algorithm)
    with pytest.raises(HTTPException):
        decode_user_id(token)
