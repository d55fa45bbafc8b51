"""Shared fixtures: in-memory stores, services, app client and tokens."""

import os
import tempfile
from collections.abc import Callable
from uuid import UUID, uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


# Must be set before the app module configures logging
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="interaction-logs-"))
os.environ.setdefault("LOG_FORMAT", "json")

from interaction_service.auth.security import create_access_token  # noqa: E402
from interaction_service.comments import service as comments_service_module  # noqa: E402
from interaction_service.comments.service import CommentService  # noqa: E402
from interaction_service.core.idempotency import IdempotencyStore  # noqa: E402
from interaction_service.main import create_app, init_services  # noqa: E402
from interaction_service.votes.service import VoteService  # noqa: E402
from tests.fakes import FakeBatch, FakeRedis, FakeSession  # noqa: E402


KEYSPACE = "test_keyspace"


@pytest.fixture(autouse=True)
def fake_batches(monkeypatch: pytest.MonkeyPatch) -> None:
    """Route logged batches through the in-memory session."""
    monkeypatch.setattr(comments_service_module, "BatchStatement", FakeBatch)


@pytest.fixture
def session() -> FakeSession:
    """In-memory Cassandra session."""
    return FakeSession()


@pytest.fixture
def redis() -> FakeRedis:
    """In-memory Redis client."""
    return FakeRedis()


@pytest.fixture
def idempotency(redis: FakeRedis) -> IdempotencyStore:
    return IdempotencyStore(redis=redis, ttl_seconds=60)


@pytest.fixture
def vote_service(session: FakeSession, idempotency: IdempotencyStore) -> VoteService:
    return VoteService(session=session, keyspace=KEYSPACE, idempotency=idempotency)


@pytest.fixture
def comment_service(
    session: FakeSession,
    redis: FakeRedis,
    idempotency: IdempotencyStore,
) -> CommentService:
    return CommentService(
        session=session,
        keyspace=KEYSPACE,
        redis=redis,
        idempotency=idempotency,
    )


@pytest.fixture
def app(session: FakeSession, redis: FakeRedis) -> FastAPI:
    """Application wired to the in-memory stores (lifespan not run)."""
    application = create_app()
    init_services(application, session, redis)
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def submission_id() -> UUID:
    return uuid4()


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a user."""

    def _headers(user_id: UUID, role: str = "participant") -> dict[str, str]:
        token = create_access_token({"sub": str(user_id), "role": role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
