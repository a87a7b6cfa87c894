"""
Shared pytest fixtures: in-memory database, stub providers, API client.
"""
from typing import Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from galaxy_chat.config import settings
from galaxy_chat.core.deps import get_db, get_gateway, get_or_create_user, get_token_claims
from galaxy_chat.main import app
from galaxy_chat.models import conversation, file, user  # noqa: F401
from galaxy_chat.services.gateway import ModelGateway
from galaxy_chat.services.providers import Success, Unavailable


class StubProvider:
    """Provider double returning a canned result and recording calls."""

    def __init__(self, name: str, text: Optional[str] = None, configured: bool = True,
                 tokens: int = 7, error: Optional[Exception] = None):
        self.name = name
        self.text = text
        self.configured = configured
        self.tokens = tokens
        self.error = error
        self.calls: List[list] = []

    async def generate(self, messages, params):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        if not self.text:
            return Unavailable(f"{self.name} had nothing to say")
        return Success(text=self.text, tokens_used=self.tokens, provider=self.name)


class AuthState:
    """Identity-provider subject used by the overridden auth dependency."""

    def __init__(self):
        self.subject = "user_alice"

    def claims(self) -> dict:
        return {"sub": self.subject, "email": f"{self.subject}@example.com", "name": self.subject}


@pytest.fixture(autouse=True)
def no_stream_delay(monkeypatch):
    monkeypatch.setattr(settings, "STREAM_CHUNK_DELAY", 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture
def alice(db_session):
    user, _ = get_or_create_user(db_session, "user_alice", email="alice@example.com")
    return user


@pytest.fixture
def bob(db_session):
    user, _ = get_or_create_user(db_session, "user_bob", email="bob@example.com")
    return user


@pytest.fixture
def gateway() -> ModelGateway:
    """Gateway with no providers: always the fallback text."""
    return ModelGateway([])


@pytest.fixture
def auth() -> AuthState:
    return AuthState()


@pytest.fixture
def client(engine, gateway, auth) -> Generator[TestClient, None, None]:
    def _get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_token_claims] = auth.claims
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(engine, gateway) -> Generator[TestClient, None, None]:
    """Client whose requests go through real token verification."""
    def _get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()
