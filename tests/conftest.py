# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from infodot_engine.core.settings import settings
from infodot_engine.db.session import Base
from infodot_engine.db.session import get_db as app_get_session
from infodot_engine.main import app as fastapi_app
from infodot_engine.models import Answer, Question, Solution, User
from infodot_engine.services.broadcast import EventBroadcaster
from infodot_engine.services.cache import CacheCoordinator, MemoryCacheBackend
from infodot_engine.services.engine import InteractionEngine

TEST_DB_URL = "sqlite://"


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def cache() -> Iterator[CacheCoordinator]:
    coordinator = CacheCoordinator(MemoryCacheBackend(), prefix="test", default_ttl=60)
    yield coordinator
    coordinator.close()


@pytest.fixture()
def transport() -> MagicMock:
    """Broadcast transport double recording every publish call."""
    return MagicMock()


@pytest.fixture()
def broadcaster(transport: MagicMock) -> Iterator[EventBroadcaster]:
    broadcaster = EventBroadcaster(transport, timeout_seconds=2.0, blocking=True)
    yield broadcaster
    broadcaster.close()


@pytest.fixture()
def interaction_engine(
    db_session: Session,
    cache: CacheCoordinator,
    broadcaster: EventBroadcaster,
) -> InteractionEngine:
    return InteractionEngine(db_session, cache, broadcaster)


def _persist(db_session: Session, row):
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture()
def alice(db_session: Session) -> User:
    """Question author."""
    return _persist(db_session, User(name="Alice", email="alice@example.com"))


@pytest.fixture()
def bob(db_session: Session) -> User:
    return _persist(db_session, User(name="Bob", email="bob@example.com"))


@pytest.fixture()
def carol(db_session: Session) -> User:
    return _persist(db_session, User(name="Carol", email="carol@example.com"))


@pytest.fixture()
def question(db_session: Session, alice: User) -> Question:
    return _persist(
        db_session,
        Question(
            user_id=alice.id,
            question="How do I reset a forgotten router password?",
            description="The admin page rejects the default credentials.",
            tags="networking,router",
        ),
    )


@pytest.fixture()
def answer_one(db_session: Session, question: Question, bob: User) -> Answer:
    return _persist(
        db_session,
        Answer(
            user_id=bob.id,
            question_id=question.id,
            content="Hold the reset button for thirty seconds.",
        ),
    )


@pytest.fixture()
def answer_two(db_session: Session, question: Question, carol: User) -> Answer:
    return _persist(
        db_session,
        Answer(
            user_id=carol.id,
            question_id=question.id,
            content="Check the sticker under the router for the password.",
        ),
    )


@pytest.fixture()
def solution(db_session: Session, bob: User) -> Solution:
    return _persist(
        db_session,
        Solution(
            user_id=bob.id,
            solution_title="Factory reset a home router",
            solution_description="Step-by-step guide to restoring factory settings.",
            tags="networking",
        ),
    )


def make_token(user_id: int) -> str:
    return jwt.encode({"sub": str(user_id)}, settings.secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a factory producing authorization headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user.id)}"}

    return _headers


@pytest.fixture()
def app(
    db_session: Session,
    cache: CacheCoordinator,
    broadcaster: EventBroadcaster,
) -> Iterator[FastAPI]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    fastapi_app.dependency_overrides[app_get_session] = _get_session_override
    fastapi_app.state.cache = cache
    fastapi_app.state.broadcaster = broadcaster
    fastapi_app.state.search_index = None
    try:
        yield fastapi_app
    finally:
        fastapi_app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    # Not entered as a context manager: startup would replace the collaborators above.
    return TestClient(app, base_url="http://test")
