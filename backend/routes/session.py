from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import ConfigDict, Field

import pipeline
from deps import get_connections, get_engine, get_store
from models.base import CamelModel
from models.messages import MetricsUpdate, SessionCompleted
from models.metrics import CognitiveMetrics
from models.session import SessionStatus
from psychology.engine import PsychologyEngine
from realtime.manager import ConnectionManager
from store import SessionStore

router = APIRouter(prefix="/cognitive", tags=["session"])


# ---------- Request / Response schemas ----------

class StartSessionRequest(CamelModel):
    user_id: Optional[str] = None
    puzzle_type: str = "ego_labyrinth"
    resolution: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: Optional[int] = None     # client clock, Unix ms; informational only


class StartSessionResponse(CamelModel):
    session_id: str
    user_id: Optional[str]
    puzzle_type: str
    started_at: datetime
    status: SessionStatus


class TrackEventRequest(CamelModel):
    """Unknown top-level fields are folded into the payload, as the browser client spreads them."""

    model_config = ConfigDict(extra="allow")

    session_id: str
    event_type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[int] = None     # Unix timestamp in milliseconds


class TrackEventResponse(CamelModel):
    success: bool = True
    session_id: str
    sequence: int


class CompleteSessionRequest(CamelModel):
    session_id: str
    final_state: dict[str, Any] = Field(default_factory=dict)


class CompleteSessionResponse(CamelModel):
    success: bool = True
    session_id: str
    status: SessionStatus
    completed_at: datetime
    metrics: CognitiveMetrics


# ---------- Endpoints ----------

@router.post("/session/start", response_model=StartSessionResponse)
async def start_session(
    body: Optional[StartSessionRequest] = Body(default=None),
    store: SessionStore = Depends(get_store),
):
    """
    Creates a new puzzle session.
    Returns the server-issued sessionId the client uses for all subsequent calls.
    """
    body = body or StartSessionRequest()
    session = await pipeline.start_session(
        store,
        user_id=body.user_id,
        puzzle_type=body.puzzle_type,
        resolution=body.resolution,
        user_agent=body.user_agent,
    )
    return StartSessionResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        puzzle_type=session.puzzle_type,
        started_at=session.started_at,
        status=session.status,
    )


@router.post("/event", response_model=TrackEventResponse)
async def track_event(
    body: TrackEventRequest,
    store: SessionStore = Depends(get_store),
    engine: PsychologyEngine = Depends(get_engine),
    connections: ConnectionManager = Depends(get_connections),
):
    """
    Appends an interaction event to an active session and pushes the live
    metrics to any realtime connections watching it.
    """
    payload = {**(body.model_extra or {}), **body.payload}
    event = await pipeline.record_event(
        store, body.session_id, body.event_type, payload, body.timestamp
    )

    if connections.watching(body.session_id):
        session = await store.get_session(body.session_id)
        await connections.broadcast(
            body.session_id,
            MetricsUpdate(session_id=body.session_id, metrics=pipeline.live_metrics(engine, session)),
        )

    return TrackEventResponse(session_id=body.session_id, sequence=event.sequence)


@router.post("/session/complete", response_model=CompleteSessionResponse)
async def complete_session(
    body: CompleteSessionRequest,
    store: SessionStore = Depends(get_store),
    engine: PsychologyEngine = Depends(get_engine),
    connections: ConnectionManager = Depends(get_connections),
):
    """
    Closes the session, runs the psychology engine and returns its metrics.
    Completing an already completed session is rejected with 409.
    """
    session = await pipeline.complete_session(store, engine, body.session_id, body.final_state)

    await connections.broadcast(
        session.session_id,
        SessionCompleted(session_id=session.session_id, metrics=session.metrics),
    )

    return CompleteSessionResponse(
        session_id=session.session_id,
        status=session.status,
        completed_at=session.completed_at,
        metrics=session.metrics,
    )
