"""Shared fixtures: in-memory database, fake chat models, API client."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient

from config import Settings
from create_tables import create_tables
from database import build_engine, build_session_factory
from main import create_app
from services import AuthService, CompletionClient, ContextWindow, ThreadService
from tests.fakes import RecordingChatModel


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def reply_model():
    return RecordingChatModel(responses=["Hi there! How can I help?"])


@pytest.fixture
def title_model():
    return RecordingChatModel(responses=["Friendly Greeting"])


@pytest.fixture
def completion(reply_model, title_model):
    return CompletionClient(model=reply_model, title_model=title_model, window=ContextWindow())


@pytest.fixture
def thread_service(completion):
    return ThreadService(completion, atomic_turns=True)


@pytest.fixture
def auth_service():
    return AuthService(secret_key="test-secret")


@pytest.fixture
def user(db, auth_service):
    return auth_service.create_user(db, "alice", "wonderland")


@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite://", SECRET_KEY="test-secret", OPENAI_API_KEY="", ATOMIC_TURNS=True)


@pytest.fixture
def client(settings, engine, completion):
    app = create_app(settings=settings, engine=engine, completion_client=completion)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_client(client):
    """A client logged in as alice through the session cookie."""
    response = client.post("/api/register", json={"username": "alice", "password": "wonderland"})
    assert response.status_code == 200
    return client
