"""
Session pipeline shared by the HTTP routes and the realtime relay.

start -> record_event* -> complete. Completion is terminal: a second
completion raises SessionAlreadyCompleted and later events raise
SessionClosed (both 409).
"""

import logging
from typing import Any, Optional

from errors import SessionAlreadyCompleted
from models.event import Event
from models.metrics import CognitiveMetrics
from models.session import Session
from psychology.engine import PsychologyEngine
from store import SessionStore
from telemetry import emit_event

logger = logging.getLogger(__name__)


async def start_session(
    store: SessionStore,
    *,
    user_id: Optional[str] = None,
    puzzle_type: str = "ego_labyrinth",
    resolution: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Session:
    session = await store.create_session(
        user_id=user_id,
        puzzle_type=puzzle_type,
        resolution=resolution,
        user_agent=user_agent,
    )
    emit_event(
        "session_started",
        session_id=session.session_id,
        user_id=user_id,
        puzzle_type=puzzle_type,
    )
    return session


async def record_event(
    store: SessionStore,
    session_id: str,
    event_type: str,
    payload: Optional[dict[str, Any]] = None,
    timestamp: Optional[int] = None,
) -> Event:
    event = await store.append_event(session_id, event_type, payload, timestamp)
    logger.debug("Event %s #%d recorded for %s", event_type, event.sequence, session_id)
    return event


def live_metrics(engine: PsychologyEngine, session: Session) -> CognitiveMetrics:
    """Metrics snapshot of a session in progress; no narrative."""
    return engine.analyze(session)


async def complete_session(
    store: SessionStore,
    engine: PsychologyEngine,
    session_id: str,
    final_state: Optional[dict[str, Any]] = None,
) -> Session:
    """
    Score the session and only then close it. If the engine fails the
    session stays active, so the client can retry the completion.
    """
    final_state = final_state or {}
    session = await store.get_session(session_id)
    if session.is_completed:
        raise SessionAlreadyCompleted(session_id)

    closing = session.model_copy(update={"final_state": final_state})
    metrics = engine.analyze(closing)
    metrics = await engine.interpret(closing, metrics)
    session = await store.complete_session(session_id, final_state, metrics)

    emit_event(
        "session_completed",
        session_id=session.session_id,
        user_id=session.user_id,
        archetype=metrics.archetype,
        event_count=metrics.event_count,
    )
    return session
