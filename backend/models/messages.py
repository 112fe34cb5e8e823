"""
Realtime relay protocol.

Every frame is a JSON object tagged by "type".

  Client -> Server:
    - { type: "join_session", sessionId }
    - { type: "track_event", eventType, payload, timestamp? }
    - { type: "complete_session", finalState }
    - { type: "ping" }

  Server -> Client:
    - { type: "connected", connectionId }
    - { type: "session_joined", sessionId, eventCount }
    - { type: "event_ack", sessionId, sequence }
    - { type: "metrics_update", sessionId, metrics }
    - { type: "session_completed", sessionId, metrics }
    - { type: "pong" }
    - { type: "error", code, message }
"""

from typing import Annotated, Any, Literal, Optional, Union, get_args

from pydantic import Field, TypeAdapter

from models.base import CamelModel
from models.metrics import CognitiveMetrics


# ---------- Client -> Server ----------

class JoinSession(CamelModel):
    type: Literal["join_session"] = "join_session"
    session_id: str


class TrackEvent(CamelModel):
    type: Literal["track_event"] = "track_event"
    event_type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[int] = None


class CompleteSession(CamelModel):
    type: Literal["complete_session"] = "complete_session"
    final_state: dict[str, Any] = Field(default_factory=dict)


class Ping(CamelModel):
    type: Literal["ping"] = "ping"


ClientMessage = Annotated[
    Union[JoinSession, TrackEvent, CompleteSession, Ping],
    Field(discriminator="type"),
]

CLIENT_MESSAGE_TYPES: tuple[type, ...] = get_args(get_args(ClientMessage)[0])

_client_message_adapter: TypeAdapter = TypeAdapter(ClientMessage)


def parse_client_message(raw: Any):
    """Validate a decoded JSON frame into one of the client message variants."""
    return _client_message_adapter.validate_python(raw)


# ---------- Server -> Client ----------

class ServerMessage(CamelModel):
    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Connected(ServerMessage):
    type: Literal["connected"] = "connected"
    connection_id: str


class SessionJoined(ServerMessage):
    type: Literal["session_joined"] = "session_joined"
    session_id: str
    event_count: int


class EventAck(ServerMessage):
    type: Literal["event_ack"] = "event_ack"
    session_id: str
    sequence: int


class MetricsUpdate(ServerMessage):
    type: Literal["metrics_update"] = "metrics_update"
    session_id: str
    metrics: CognitiveMetrics


class SessionCompleted(ServerMessage):
    type: Literal["session_completed"] = "session_completed"
    session_id: str
    metrics: CognitiveMetrics


class Pong(ServerMessage):
    type: Literal["pong"] = "pong"


class ErrorMessage(ServerMessage):
    type: Literal["error"] = "error"
    code: str
    message: str
