"""
Tests for the session lifecycle endpoints and the service endpoints.

Runs the full app through TestClient; Gemini is disabled by conftest so
every completion gets the template interpretation.
"""

import os
from unittest.mock import patch

from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from models.session import SessionStatus
from telemetry import register_listener

MIXED_EVENTS = [
    ("move", 0),
    ("move", 100),
    ("choice", 200),
    ("backtrack", 3000),
    ("choice", 3300),
    ("hint_request", 6000),
]


def _track(client, session_id, event_type, timestamp=None, **extra):
    body = {"sessionId": session_id, "eventType": event_type, **extra}
    if timestamp is not None:
        body["timestamp"] = timestamp
    return client.post("/api/cognitive/event", json=body)


def _complete(client, session_id, final_state=None):
    return client.post(
        "/api/cognitive/session/complete",
        json={"sessionId": session_id, "finalState": final_state or {}},
    )


def _database_settings(path) -> Settings:
    return Settings(environment="test", database_url=f"sqlite:///{path}", gemini_api_key=None)


# ── Start ──────────────────────────────────────────────────────────────────


class TestStartSession:
    def test_start_returns_session(self, client):
        response = client.post(
            "/api/cognitive/session/start",
            json={"userId": "u1", "puzzleType": "ego_labyrinth", "resolution": "1920x1080"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["sessionId"].startswith("cm_")
        assert data["userId"] == "u1"
        assert data["puzzleType"] == "ego_labyrinth"
        assert data["status"] == "active"
        assert "startedAt" in data

    def test_start_without_body(self, client):
        response = client.post("/api/cognitive/session/start")
        assert response.status_code == 200
        data = response.json()
        assert data["userId"] is None
        assert data["puzzleType"] == "ego_labyrinth"

    def test_sessions_get_distinct_ids(self, client):
        ids = {client.post("/api/cognitive/session/start").json()["sessionId"] for _ in range(5)}
        assert len(ids) == 5


# ── Events ─────────────────────────────────────────────────────────────────


class TestTrackEvent:
    def test_events_are_sequenced(self, client, started_session):
        first = _track(client, started_session, "move", timestamp=0)
        second = _track(client, started_session, "choice", timestamp=100)
        assert first.status_code == 200
        assert first.json() == {"success": True, "sessionId": started_session, "sequence": 1}
        assert second.json()["sequence"] == 2

    def test_extra_fields_fold_into_payload(self, app, client, started_session):
        _track(client, started_session, "move", timestamp=0, x=3, payload={"y": 1})
        session = app.state.store._sessions[started_session]
        assert session.events[0].payload == {"x": 3, "y": 1}

    def test_unknown_session(self, client):
        response = _track(client, "cm_missing", "move")
        assert response.status_code == 404
        assert response.json()["code"] == "SESSION_NOT_FOUND"

    def test_missing_event_type_is_rejected(self, client, started_session):
        response = client.post("/api/cognitive/event", json={"sessionId": started_session})
        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "INVALID_REQUEST"
        assert body["errors"]

    def test_event_after_completion_is_rejected(self, client, started_session):
        _complete(client, started_session)
        response = _track(client, started_session, "move")
        assert response.status_code == 409
        assert response.json()["code"] == "SESSION_COMPLETED"


# ── Complete ───────────────────────────────────────────────────────────────


class TestCompleteSession:
    def test_full_lifecycle(self, client, started_session):
        for event_type, ts in MIXED_EVENTS:
            assert _track(client, started_session, event_type, timestamp=ts).status_code == 200

        response = _complete(client, started_session, {"score": 42})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "completed"
        assert data["completedAt"]

        metrics = data["metrics"]
        assert metrics["eventCount"] == 6
        assert metrics["durationMs"] == 6000
        assert metrics["score"] == 42
        assert metrics["archetype"] == "intuitive"
        assert metrics["fingerprint"] == "0.7-0.4-0.8-0.4-0.6"
        assert metrics["interpretation"].startswith("You played like an intuitive")

    def test_completion_without_events(self, client, started_session):
        response = _complete(client, started_session)
        assert response.status_code == 200
        metrics = response.json()["metrics"]
        assert metrics["eventCount"] == 0
        assert metrics["archetype"] == "explorer"

    def test_second_completion_conflicts(self, client, started_session):
        assert _complete(client, started_session, {"score": 42}).status_code == 200
        response = _complete(client, started_session, {"score": 1})
        assert response.status_code == 409
        assert response.json()["code"] == "SESSION_ALREADY_COMPLETED"

    def test_unknown_session(self, client):
        response = _complete(client, "cm_missing")
        assert response.status_code == 404
        assert response.json()["message"] == "Session cm_missing not found"

    def test_overflowing_duration_falls_back_to_event_span(self, client, started_session):
        _track(client, started_session, "move", timestamp=0)
        _track(client, started_session, "choice", timestamp=1500)

        # 1e400 is valid JSON that parses to inf; httpx will not encode inf, so send it raw
        response = client.post(
            "/api/cognitive/session/complete",
            content=f'{{"sessionId": "{started_session}", "finalState": {{"durationMs": 1e400, "score": -1e400}}}}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 200
        metrics = response.json()["metrics"]
        assert metrics["durationMs"] == 1500
        assert metrics["score"] is None

        retry = _complete(client, started_session)
        assert retry.status_code == 409
        assert retry.json()["code"] == "SESSION_ALREADY_COMPLETED"

    def test_engine_failure_leaves_session_open_for_retry(self, app, monkeypatch):
        def broken(session):
            raise RuntimeError("engine down")

        with TestClient(app, raise_server_exceptions=False) as client:
            session_id = client.post("/api/cognitive/session/start", json={"userId": "u1"}).json()["sessionId"]
            _track(client, session_id, "move", timestamp=0)

            monkeypatch.setattr(app.state.engine, "analyze", broken)
            failed = _complete(client, session_id, {"score": 7})
            assert failed.status_code == 500
            assert failed.json()["code"] == "INTERNAL_ERROR"

            stranded = app.state.store._sessions[session_id]
            assert stranded.status is SessionStatus.ACTIVE
            assert stranded.metrics is None
            assert _track(client, session_id, "choice", timestamp=900).status_code == 200

            monkeypatch.undo()
            retry = _complete(client, session_id, {"score": 7})
            assert retry.status_code == 200
            assert retry.json()["metrics"]["score"] == 7
            assert retry.json()["metrics"]["eventCount"] == 2
            assert app.state.store.find_profile("u1").sessions[0].session_id == session_id

    def test_lifecycle_emits_telemetry(self, client):
        seen = []
        register_listener(lambda event: seen.append(event))

        session_id = client.post("/api/cognitive/session/start", json={"userId": "u7"}).json()["sessionId"]
        _complete(client, session_id)

        names = [e.name for e in seen]
        assert names == ["session_started", "session_completed"]
        assert seen[0].fields["user_id"] == "u7"
        assert seen[1].fields["archetype"] == "explorer"


# ── Service endpoints ──────────────────────────────────────────────────────


class TestServiceEndpoints:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["healthy"] is True
        assert data["environment"] == "test"
        assert data["connections"] == 0
        assert data["uptime"] >= 0
        assert data["store"] == "in-memory"

    def test_health_with_database(self, tmp_path):
        app = create_app(_database_settings(tmp_path / "mirrors.db"))
        with TestClient(app) as client:
            response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["store"] == "connected"

    def test_health_with_unreachable_database(self, tmp_path):
        app = create_app(_database_settings(tmp_path / "missing" / "mirrors.db"))
        # no lifespan: opening the store would fail on the same database
        response = TestClient(app).get("/api/health")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["healthy"] is False
        assert data["store"] == "disconnected"

    def test_sessions_survive_a_restart(self, tmp_path):
        settings = _database_settings(tmp_path / "mirrors.db")
        with TestClient(create_app(settings)) as client:
            session_id = client.post("/api/cognitive/session/start", json={"userId": "u1"}).json()["sessionId"]
            for event_type, ts in MIXED_EVENTS:
                _track(client, session_id, event_type, timestamp=ts)
            metrics = _complete(client, session_id, {"score": 42}).json()["metrics"]

        with TestClient(create_app(settings)) as client:
            visualization = client.get(f"/api/cognitive/visualization/{session_id}").json()
            stats = client.get("/api/cognitive/stats").json()
            late = _track(client, session_id, "move")

        assert visualization["metrics"] == metrics
        assert len(visualization["timeline"]) == len(MIXED_EVENTS)
        assert stats["mindsAnalyzed"] == 1
        assert late.status_code == 409

    def test_gemini_key_goes_to_the_engine_not_the_environment(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with patch("psychology.narrative.genai.Client") as client_cls:
            app = create_app(Settings(environment="test", database_url=None, gemini_api_key="key-123"))

        client_cls.assert_called_once_with(api_key="key-123")
        assert app.state.engine.narrative_enabled
        assert "GEMINI_API_KEY" not in os.environ

    def test_version(self, client):
        data = client.get("/api/version").json()
        assert data == {
            "name": "Cognitive Mirrors API",
            "version": "1.0.0",
            "psychologyEngine": "v2.1",
            "cognitiveModels": 7,
            "puzzles": 12,
        }

    def test_stats(self, client, started_session):
        _complete(client, started_session)
        client.post("/api/cognitive/session/start", json={"userId": "u2"})

        data = client.get("/api/cognitive/stats").json()
        assert data["totalPuzzles"] == 12
        assert data["biasesDetected"] == 24
        assert data["mindsAnalyzed"] == 1
        assert data["sessions"] == 2
        assert data["completedSessions"] == 1
        assert data["liveConnections"] == 0
        assert data["archetypeDistribution"] == {"explorer": 1}

    def test_unknown_route(self, client):
        assert client.get("/api/cognitive/nothing-here").status_code == 404
