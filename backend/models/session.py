from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from models.base import CamelModel
from models.event import Event
from models.metrics import CognitiveMetrics


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class Session(CamelModel):
    session_id: str
    user_id: Optional[str] = None
    puzzle_type: str = "ego_labyrinth"
    resolution: Optional[str] = None
    user_agent: Optional[str] = None
    started_at: datetime = Field(default_factory=_utcnow)
    status: SessionStatus = SessionStatus.ACTIVE
    completed_at: Optional[datetime] = None
    final_state: Optional[dict[str, Any]] = None
    events: list[Event] = Field(default_factory=list)
    metrics: Optional[CognitiveMetrics] = None

    @property
    def is_completed(self) -> bool:
        return self.status is SessionStatus.COMPLETED
