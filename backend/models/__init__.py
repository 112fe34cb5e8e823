from models.event import Event
from models.metrics import CognitiveMetrics
from models.profile import CognitiveProfile, PrivacyLevel, SessionSummary, ShareRecord
from models.session import Session, SessionStatus

__all__ = [
    "CognitiveMetrics",
    "CognitiveProfile",
    "Event",
    "PrivacyLevel",
    "Session",
    "SessionStatus",
    "SessionSummary",
    "ShareRecord",
]
