"""
Domain errors for the cognitive API.

Every error carries an HTTP status and a machine-readable code so the
HTTP layer and the realtime relay can report it the same way:
  HTTP     -> {"message": ..., "code": ...}
  realtime -> {"type": "error", "code": ..., "message": ...}
"""

from typing import Optional


class CognitiveError(Exception):
    status_code = 400
    code = "COGNITIVE_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class SessionNotFound(CognitiveError):
    status_code = 404
    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionAlreadyCompleted(CognitiveError):
    status_code = 409
    code = "SESSION_ALREADY_COMPLETED"

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is already completed")
        self.session_id = session_id


class SessionClosed(CognitiveError):
    """An event arrived for a session that has already been completed."""

    status_code = 409
    code = "SESSION_COMPLETED"

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} no longer accepts events")
        self.session_id = session_id


class ProfileNotFound(CognitiveError):
    status_code = 404
    code = "PROFILE_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__(f"No cognitive profile for user {user_id}")
        self.user_id = user_id


class ShareNotAllowed(CognitiveError):
    status_code = 403
    code = "SHARE_NOT_ALLOWED"
