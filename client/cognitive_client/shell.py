"""
Application shell: startup orchestration and the user-facing flows.

All client state lives on an explicit AppContext. Startup is strictly
ordered and all-or-nothing:

  health check -> create session -> load/create profile -> render -> start tracking

The first failure leaves ctx.initialized False, records ctx.error and
asks the presenter to show an error with a retry action.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Protocol

from cognitive_client.api import CognitiveAPI
from cognitive_client.local_store import (
    LocalStore,
    get_user_id,
    load_user_profile,
    remember_session,
    save_user_profile,
)
from cognitive_client.tracker import EventTracker

logger = logging.getLogger(__name__)

DEFAULT_PUZZLE = "ego_labyrinth"

Retry = Callable[[], Awaitable[bool]]


class StartupError(Exception):
    pass


class Presenter(Protocol):
    def render(self, ctx: "AppContext") -> None: ...

    def navigate(self, page: str, params: dict[str, Any]) -> None: ...

    def show_error(self, error: Exception, retry: Retry) -> None: ...


class LoggingPresenter:
    """Headless presenter: reports what a UI would show."""

    def render(self, ctx: "AppContext") -> None:
        logger.info(
            "Cognitive Mirrors ready: session=%s user=%s archetype=%s",
            ctx.session["sessionId"],
            ctx.profile["userId"],
            ctx.profile.get("archetype"),
        )

    def navigate(self, page: str, params: dict[str, Any]) -> None:
        logger.info("Navigate to %s %s", page, params)

    def show_error(self, error: Exception, retry: Retry) -> None:
        logger.error("Cognitive Engine Error: %s", error or "An unexpected error occurred")


@dataclass
class AppContext:
    api: CognitiveAPI
    store: LocalStore
    tracker: EventTracker
    presenter: Presenter = field(default_factory=LoggingPresenter)
    puzzle_type: str = DEFAULT_PUZZLE
    resolution: Optional[str] = None
    user_agent: str = "cognitive-client (python)"
    session: Optional[dict[str, Any]] = None
    profile: Optional[dict[str, Any]] = None
    initialized: bool = False
    error: Optional[Exception] = None
    listeners: dict[str, list[Callable[[dict[str, Any]], None]]] = field(default_factory=dict)

    def on(self, name: str, callback: Callable[[dict[str, Any]], None]) -> None:
        self.listeners.setdefault(name, []).append(callback)

    def dispatch_event(self, name: str, data: dict[str, Any]) -> None:
        for callback in list(self.listeners.get(name, [])):
            callback(data)


# ---------- Startup ----------

async def start_new_session(ctx: AppContext) -> dict[str, Any]:
    session_data = {
        "userId": get_user_id(ctx.store),
        "puzzleType": ctx.puzzle_type,
        "resolution": ctx.resolution,
        "userAgent": ctx.user_agent,
        "timestamp": int(datetime.now(timezone.utc).timestamp() * 1000),
    }
    session = await ctx.api.create_session(session_data)
    remember_session(ctx.store, session["sessionId"])
    return session


async def initialize(ctx: AppContext) -> bool:
    ctx.error = None
    logger.info("Initializing Cognitive Mirrors...")
    try:
        health = await ctx.api.check_health()
        if not health.get("healthy"):
            raise StartupError(f"API server is not available: {health.get('error', 'unhealthy')}")

        ctx.session = await start_new_session(ctx)
        ctx.profile = load_user_profile(ctx.store)
        ctx.presenter.render(ctx)
        await ctx.tracker.start(ctx.session)
    except Exception as exc:  # noqa: BLE001
        logger.error("Failed to initialize app: %s", exc)
        ctx.error = exc
        ctx.presenter.show_error(exc, lambda: initialize(ctx))
        return False

    ctx.initialized = True
    logger.info("Cognitive Mirrors initialized")
    ctx.dispatch_event("app:ready", {"session": ctx.session, "profile": ctx.profile})
    return True


# ---------- Flows ----------

def navigate_to(ctx: AppContext, page: str, params: Optional[dict[str, Any]] = None) -> None:
    params = params or {}
    ctx.presenter.navigate(page, params)
    ctx.dispatch_event("app:navigate", {"page": page, "params": params})


async def start_puzzle(ctx: AppContext, puzzle_type: str = DEFAULT_PUZZLE) -> bool:
    if not ctx.initialized and not await initialize(ctx):
        return False

    ctx.tracker.track("puzzle_start", {"puzzleType": puzzle_type})
    navigate_to(ctx, "puzzle", {"puzzleType": puzzle_type})
    return True


async def finish_session(ctx: AppContext, final_state: dict[str, Any]) -> dict[str, Any]:
    """
    Complete the current session and fold the result into the local profile.
    Errors from the API propagate; the profile is only updated on success.
    """
    if ctx.session is None or ctx.profile is None:
        raise StartupError("The app has not been initialized")

    await ctx.tracker.flush()
    result = await ctx.api.complete_session(ctx.session["sessionId"], final_state)

    metrics = result.get("metrics") or {}
    ctx.profile["sessions"].append({
        "sessionId": result["sessionId"],
        "puzzleType": ctx.session.get("puzzleType", ctx.puzzle_type),
        "archetype": metrics.get("archetype"),
        "score": metrics.get("score"),
        "completedAt": result.get("completedAt"),
    })
    if metrics.get("archetype"):
        ctx.profile["archetype"] = metrics["archetype"]
    save_user_profile(ctx.store, ctx.profile)
    ctx.session["status"] = result.get("status", "completed")
    return result


def toggle_theme(ctx: AppContext) -> str:
    if ctx.profile is None:
        raise StartupError("The app has not been initialized")
    preferences = ctx.profile.setdefault("preferences", {})
    preferences["theme"] = "light" if preferences.get("theme", "dark") == "dark" else "dark"
    save_user_profile(ctx.store, ctx.profile)
    return preferences["theme"]
