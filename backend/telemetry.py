"""
Lifecycle events for the session pipeline and the realtime relay.

emit_event() writes one "TELEMETRY {json}" line to the cognitive.telemetry
logger and hands the event to every registered listener. Listeners run
inline; one that raises is logged and skipped.

Events emitted:
  session_started     session_id, user_id, puzzle_type
  session_completed   session_id, user_id, archetype, event_count
  connection_opened   connection_id
  connection_closed   connection_id, session_id, reason
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger("cognitive.telemetry")


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    fields: dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[TelemetryEvent], None]

_listeners: list[Listener] = []


def register_listener(listener: Listener) -> Callable[[], None]:
    """Add a listener. Returns a callable that removes it again."""
    _listeners.append(listener)

    def unregister() -> None:
        if listener in _listeners:
            _listeners.remove(listener)

    return unregister


def clear_listeners() -> None:
    _listeners.clear()


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def emit_event(name: str, **fields: Any) -> TelemetryEvent:
    event = TelemetryEvent(name=name, fields={k: _plain(v) for k, v in fields.items()})

    for listener in list(_listeners):
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    logger.info("TELEMETRY %s", json.dumps({"event": name, **event.fields}, default=str))
    return event
