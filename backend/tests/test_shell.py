"""
Tests for the client application shell: ordered startup, failure
reporting with retry, and the puzzle flows.

The shell runs against the real app over httpx.ASGITransport.
"""

import asyncio
import json

import httpx
import pytest

from cognitive_client.api import CognitiveAPI
from cognitive_client.local_store import LocalStore, last_session_id, profile_key
from cognitive_client.shell import (
    AppContext,
    StartupError,
    finish_session,
    initialize,
    start_puzzle,
    toggle_theme,
)
from cognitive_client.tracker import EventTracker

BASE_URL = "http://testserver/api"


class RecordingPresenter:
    def __init__(self):
        self.rendered = 0
        self.pages = []
        self.errors = []

    def render(self, ctx):
        self.rendered += 1

    def navigate(self, page, params):
        self.pages.append((page, params))

    def show_error(self, error, retry):
        self.errors.append((error, retry))


def _context(tmp_path, transport) -> AppContext:
    api = CognitiveAPI(BASE_URL, client=httpx.AsyncClient(transport=transport))
    return AppContext(
        api=api,
        store=LocalStore(storage_dir=tmp_path),
        tracker=EventTracker(api),
        presenter=RecordingPresenter(),
    )


def _refuse(request):
    raise httpx.ConnectError("Connection refused", request=request)


class TestInitialize:
    def test_startup_in_order(self, app, tmp_path):
        ctx = _context(tmp_path, httpx.ASGITransport(app=app))
        ready = []
        ctx.on("app:ready", ready.append)

        async def run():
            ok = await initialize(ctx)
            await ctx.tracker.aclose()
            return ok

        assert asyncio.run(run()) is True
        assert ctx.initialized
        assert ctx.error is None
        assert ctx.presenter.rendered == 1
        assert last_session_id(ctx.store) == ctx.session["sessionId"]
        assert ctx.profile["userId"] == ctx.session["userId"]
        assert ready == [{"session": ctx.session, "profile": ctx.profile}]

        server_session = app.state.store._sessions[ctx.session["sessionId"]]
        assert [e.event_type for e in server_session.events] == ["session_start"]

    def test_unavailable_server(self, tmp_path):
        ctx = _context(tmp_path, httpx.MockTransport(_refuse))

        assert asyncio.run(initialize(ctx)) is False
        assert not ctx.initialized
        assert isinstance(ctx.error, StartupError)
        assert "API server is not available" in str(ctx.error)
        assert ctx.session is None
        assert ctx.presenter.rendered == 0
        assert len(ctx.presenter.errors) == 1

    def test_retry_runs_startup_again(self, tmp_path):
        ctx = _context(tmp_path, httpx.MockTransport(_refuse))
        asyncio.run(initialize(ctx))
        _, retry = ctx.presenter.errors[0]

        assert asyncio.run(retry()) is False
        assert len(ctx.presenter.errors) == 2

    def test_session_failure_stops_startup(self, tmp_path):
        def handler(request):
            if request.url.path.endswith("/health"):
                return httpx.Response(200, json={"status": "healthy", "healthy": True})
            return httpx.Response(500, json={"message": "Internal server error"})

        ctx = _context(tmp_path, httpx.MockTransport(handler))
        assert asyncio.run(initialize(ctx)) is False
        assert ctx.error.message == "Internal server error"
        assert ctx.profile is None


class TestFlows:
    def _ready(self, app, tmp_path) -> AppContext:
        ctx = _context(tmp_path, httpx.ASGITransport(app=app))

        async def run():
            ok = await initialize(ctx)
            await ctx.tracker.aclose()
            return ok

        assert asyncio.run(run())
        return ctx

    def test_start_puzzle_tracks_and_navigates(self, app, tmp_path):
        ctx = self._ready(app, tmp_path)
        navigations = []
        ctx.on("app:navigate", navigations.append)

        async def run():
            ok = await start_puzzle(ctx, "moral_maze")
            await ctx.tracker.aclose()
            return ok

        assert asyncio.run(run()) is True
        assert ctx.presenter.pages == [("puzzle", {"puzzleType": "moral_maze"})]
        assert navigations == [{"page": "puzzle", "params": {"puzzleType": "moral_maze"}}]

        events = app.state.store._sessions[ctx.session["sessionId"]].events
        assert [e.event_type for e in events] == ["session_start", "puzzle_start"]

    def test_start_puzzle_initializes_first(self, app, tmp_path):
        ctx = _context(tmp_path, httpx.ASGITransport(app=app))

        async def run():
            ok = await start_puzzle(ctx)
            await ctx.tracker.aclose()
            return ok

        assert asyncio.run(run()) is True
        assert ctx.initialized

    def test_finish_session_updates_profile(self, app, tmp_path):
        ctx = self._ready(app, tmp_path)

        async def run():
            result = await finish_session(ctx, {"score": 42})
            await ctx.tracker.aclose()
            return result

        result = asyncio.run(run())
        assert result["status"] == "completed"
        assert ctx.session["status"] == "completed"

        summary = ctx.profile["sessions"][0]
        assert summary["sessionId"] == ctx.session["sessionId"]
        assert summary["score"] == 42
        assert ctx.profile["archetype"] == result["metrics"]["archetype"]

        stored = json.loads(ctx.store.get_item(profile_key(ctx.profile["userId"])))
        assert stored["archetype"] == ctx.profile["archetype"]

    def test_finish_before_initialize(self, tmp_path):
        ctx = _context(tmp_path, httpx.MockTransport(_refuse))
        with pytest.raises(StartupError):
            asyncio.run(finish_session(ctx, {}))

    def test_toggle_theme(self, app, tmp_path):
        ctx = self._ready(app, tmp_path)
        assert toggle_theme(ctx) == "light"
        assert toggle_theme(ctx) == "dark"
