import os

os.environ.setdefault("COGNITIVE_ENV", "test")
os.environ.setdefault("COGNITIVE_LOG_LEVEL", "WARNING")
os.environ.setdefault("COGNITIVE_DATABASE_URL", "")

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from telemetry import clear_listeners


@pytest.fixture(autouse=True)
def _reset_telemetry():
    yield
    clear_listeners()


@pytest.fixture
def settings():
    """In-memory store, no Gemini key: narratives use the template."""
    return Settings(environment="test", database_url=None, gemini_api_key=None)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def started_session(client):
    """Start a session for user u1 and return its id."""
    response = client.post(
        "/api/cognitive/session/start",
        json={"userId": "u1", "puzzleType": "ego_labyrinth"},
    )
    assert response.status_code == 200
    return response.json()["sessionId"]
