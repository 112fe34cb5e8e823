"""
Metric computation over a session's event log.

Every dimension is a rate in 0.0 - 1.0 derived purely from event types and
the gaps between event timestamps, so the same log always yields the
same metrics.

decisiveness:
    choices / (choices + backtracks). 0.5 when neither occurred.

exploration:
    Half breadth (distinct behavioural event types over the catalog),
    half volume (moves + choices, saturating at EXPLORATION_SATURATION).
    0.5 when no behavioural events were logged.

persistence:
    1 - share of behavioural events that were hint requests.

reflection:
    Share of inter-event gaps of at least REFLECTION_GAP_MS.

impulsivity:
    Share of inter-event gaps shorter than IMPULSE_GAP_MS.
"""

import math
from typing import Any, Optional

from models.event import Event
from models.session import Session
from psychology.catalog import BEHAVIOURAL_EVENTS

REFLECTION_GAP_MS = 2000
IMPULSE_GAP_MS = 500
EXPLORATION_SATURATION = 20
NEUTRAL = 0.5


def _clamp(value: float) -> float:
    return round(max(0.0, min(1.0, value)), 4)


def _ordered_events(session: Session) -> list[Event]:
    return sorted(session.events, key=lambda e: e.sequence)


def _count(events: list[Event], kind: str) -> int:
    return sum(1 for e in events if e.event_type == kind)


def _gaps(events: list[Event]) -> list[int]:
    return [
        max(0, later.timestamp - earlier.timestamp)
        for earlier, later in zip(events, events[1:])
    ]


def _numeric(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # JSON bodies may carry 1e400, NaN or 400-digit integers; none is a usable duration or score.
    try:
        value = float(value)
    except OverflowError:
        return None
    if not math.isfinite(value):
        return None
    return value


def compute_dimensions(session: Session) -> dict[str, float]:
    events = _ordered_events(session)
    behavioural = [e for e in events if e.event_type in BEHAVIOURAL_EVENTS]

    choices = _count(behavioural, "choice")
    backtracks = _count(behavioural, "backtrack")
    moves = _count(behavioural, "move")
    hints = _count(behavioural, "hint_request")

    if choices + backtracks:
        decisiveness = choices / (choices + backtracks)
    else:
        decisiveness = NEUTRAL

    if behavioural:
        breadth = len({e.event_type for e in behavioural}) / len(BEHAVIOURAL_EVENTS)
        volume = min(1.0, (moves + choices) / EXPLORATION_SATURATION)
        exploration = 0.5 * breadth + 0.5 * volume
        persistence = 1.0 - hints / len(behavioural)
    else:
        exploration = NEUTRAL
        persistence = NEUTRAL

    gaps = _gaps(events)
    if gaps:
        reflection = sum(1 for g in gaps if g >= REFLECTION_GAP_MS) / len(gaps)
        impulsivity = sum(1 for g in gaps if g < IMPULSE_GAP_MS) / len(gaps)
    else:
        reflection = 0.0
        impulsivity = 0.0

    return {
        "decisiveness": _clamp(decisiveness),
        "exploration": _clamp(exploration),
        "persistence": _clamp(persistence),
        "reflection": _clamp(reflection),
        "impulsivity": _clamp(impulsivity),
    }


def session_duration_ms(session: Session) -> int:
    """Duration reported by the client if present, otherwise the span of the event log."""
    final_state = session.final_state or {}
    for key in ("durationMs", "duration_ms"):
        reported = _numeric(final_state.get(key))
        if reported is not None and reported >= 0:
            return int(reported)

    events = _ordered_events(session)
    if len(events) < 2:
        return 0
    return max(0, events[-1].timestamp - events[0].timestamp)


def session_score(session: Session) -> Optional[float]:
    return _numeric((session.final_state or {}).get("score"))
