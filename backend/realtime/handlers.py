"""
Dispatch of inbound realtime messages.

HANDLERS maps every client message class to its coroutine. The table is
checked against the protocol when this module is imported, so adding a
message variant without a handler fails at startup rather than on the
first frame of that type.
"""

import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from pydantic import ValidationError

import pipeline
from errors import CognitiveError
from models.messages import (
    CLIENT_MESSAGE_TYPES,
    CompleteSession,
    ErrorMessage,
    EventAck,
    JoinSession,
    MetricsUpdate,
    Ping,
    Pong,
    SessionCompleted,
    SessionJoined,
    TrackEvent,
    parse_client_message,
)
from psychology.engine import PsychologyEngine
from realtime.manager import Connection, ConnectionManager
from store import SessionStore

logger = logging.getLogger(__name__)

ERR_INVALID_MESSAGE = "INVALID_MESSAGE"
ERR_NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"


@dataclass
class RelayContext:
    store: SessionStore
    engine: PsychologyEngine
    connections: ConnectionManager


Handler = Callable[[RelayContext, Connection, object], Awaitable[None]]


class NoActiveSession(CognitiveError):
    status_code = 409
    code = ERR_NO_ACTIVE_SESSION

    def __init__(self):
        super().__init__("Join a session before sending session messages")


def _joined_session(connection: Connection) -> str:
    if connection.session_id is None:
        raise NoActiveSession()
    return connection.session_id


# ---------- Handlers ----------

async def handle_join_session(ctx: RelayContext, connection: Connection, message: JoinSession) -> None:
    session = await ctx.store.get_session(message.session_id)
    await ctx.connections.join(connection, session.session_id)
    await ctx.connections.send(
        connection,
        SessionJoined(session_id=session.session_id, event_count=len(session.events)),
    )


async def handle_track_event(ctx: RelayContext, connection: Connection, message: TrackEvent) -> None:
    session_id = _joined_session(connection)
    event = await pipeline.record_event(
        ctx.store, session_id, message.event_type, message.payload, message.timestamp
    )
    await ctx.connections.send(connection, EventAck(session_id=session_id, sequence=event.sequence))

    session = await ctx.store.get_session(session_id)
    await ctx.connections.broadcast(
        session_id,
        MetricsUpdate(session_id=session_id, metrics=pipeline.live_metrics(ctx.engine, session)),
    )


async def handle_complete_session(ctx: RelayContext, connection: Connection, message: CompleteSession) -> None:
    session_id = _joined_session(connection)
    session = await pipeline.complete_session(ctx.store, ctx.engine, session_id, message.final_state)
    await ctx.connections.broadcast(
        session_id,
        SessionCompleted(session_id=session_id, metrics=session.metrics),
    )


async def handle_ping(ctx: RelayContext, connection: Connection, message: Ping) -> None:
    await ctx.connections.send(connection, Pong())


HANDLERS: dict[type, Handler] = {
    JoinSession: handle_join_session,
    TrackEvent: handle_track_event,
    CompleteSession: handle_complete_session,
    Ping: handle_ping,
}


def check_exhaustive(handlers: dict[type, Handler] = HANDLERS) -> None:
    missing = [cls.__name__ for cls in CLIENT_MESSAGE_TYPES if cls not in handlers]
    if missing:
        raise RuntimeError(f"No realtime handler for message types: {', '.join(missing)}")


check_exhaustive()


# ---------- Dispatch ----------

async def dispatch(ctx: RelayContext, connection: Connection, raw: str) -> None:
    """Decode one frame and run its handler. Failures are answered with an error frame."""
    try:
        message = parse_client_message(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.info("Invalid frame from %s: %s", connection.connection_id, exc)
        await ctx.connections.send(
            connection,
            ErrorMessage(code=ERR_INVALID_MESSAGE, message="Frame is not a valid client message"),
        )
        return

    handler = HANDLERS[type(message)]
    try:
        await handler(ctx, connection, message)
    except CognitiveError as exc:
        await ctx.connections.send(connection, ErrorMessage(code=exc.code, message=exc.message))
