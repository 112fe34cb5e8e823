from typing import Any

from pydantic import Field

from models.base import CamelModel


class Event(CamelModel):
    session_id: str
    event_type: str     # "session_start" | "puzzle_start" | "move" | "choice" | "backtrack" | "hint_request" | ...
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: int      # Unix timestamp in milliseconds
    sequence: int = 0   # 1-based arrival order within the session
