from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from models.base import CamelModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionSummary(CamelModel):
    session_id: str
    puzzle_type: str
    archetype: str
    score: Optional[float] = None
    completed_at: datetime


class CognitiveProfile(CamelModel):
    """Server-side mirror of a user's profile, updated on every completion."""

    user_id: str
    archetype: Optional[str] = None
    fingerprint: Optional[str] = None
    sessions: list[SessionSummary] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class PrivacyLevel(str, Enum):
    PUBLIC = "public"
    ANONYMOUS = "anonymous"
    PRIVATE = "private"


class ShareRecord(CamelModel):
    share_id: str
    user_id: str
    privacy_level: PrivacyLevel
    archetype: Optional[str] = None
    fingerprint: Optional[str] = None
    profile_data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
