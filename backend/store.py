"""
Session and profile store.

One SessionStore is built per application in create_app() and handed to
routes and realtime handlers; there is no module-level state. Every
mutation runs under a single asyncio.Lock.

Reads are served from memory. When a Database is given, open() loads every
record from it and each mutation is written through in one transaction
before the in-memory copy changes, so a failed write leaves the store as
it was. Without a Database the store lives and dies with the process.
"""

import asyncio
import logging
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from db import Database, DocumentRepository
from errors import (
    ProfileNotFound,
    SessionAlreadyCompleted,
    SessionClosed,
    SessionNotFound,
)
from models.event import Event
from models.metrics import CognitiveMetrics
from models.profile import CognitiveProfile, PrivacyLevel, SessionSummary, ShareRecord
from models.session import Session, SessionStatus

logger = logging.getLogger(__name__)

BACKEND_MEMORY = "in-memory"
BACKEND_CONNECTED = "connected"
BACKEND_DISCONNECTED = "disconnected"


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStore:
    def __init__(self, database: Optional[Database] = None):
        self._database = database
        self._repository = DocumentRepository()
        self._sessions: dict[str, Session] = {}
        self._profiles: dict[str, CognitiveProfile] = {}
        self._shares: dict[str, ShareRecord] = {}
        self._lock = asyncio.Lock()

    # ---------- Lifecycle ----------

    @property
    def durable(self) -> bool:
        return self._database is not None

    async def open(self) -> None:
        """Create the schema if needed and load every stored record."""
        if self._database is None:
            return
        async with self._lock:
            self._database.create_schema()
            with self._database.session_scope(commit=False) as db:
                sessions = self._repository.load_sessions(db)
                profiles = self._repository.load_profiles(db)
                shares = self._repository.load_shares(db)

            self._sessions = {s.session_id: s for s in sessions}
            self._profiles = {p.user_id: p for p in profiles}
            self._shares = {s.share_id: s for s in shares}
        logger.info(
            "Store loaded from %s: %d session(s), %d profile(s), %d share(s)",
            self._database.url, len(sessions), len(profiles), len(shares),
        )

    def close(self) -> None:
        if self._database is not None:
            self._database.dispose()

    def backend_status(self) -> str:
        """Reachability of the backing database, checked now."""
        if self._database is None:
            return BACKEND_MEMORY
        return BACKEND_CONNECTED if self._database.ping() else BACKEND_DISCONNECTED

    def _write(
        self,
        *,
        sessions: Iterable[Session] = (),
        profiles: Iterable[CognitiveProfile] = (),
        share: Optional[ShareRecord] = None,
    ) -> None:
        if self._database is None:
            return
        with self._database.session_scope() as db:
            for session in sessions:
                self._repository.save_session(db, session)
            for profile in profiles:
                self._repository.save_profile(db, profile)
            if share is not None:
                self._repository.replace_share(db, share)

    # ---------- Sessions ----------

    async def create_session(
        self,
        user_id: Optional[str] = None,
        puzzle_type: str = "ego_labyrinth",
        resolution: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Session:
        async with self._lock:
            session_id = _new_id("cm")
            while session_id in self._sessions:
                session_id = _new_id("cm")
            session = Session(
                session_id=session_id,
                user_id=user_id,
                puzzle_type=puzzle_type,
                resolution=resolution,
                user_agent=user_agent,
            )
            self._write(sessions=[session])
            self._sessions[session_id] = session
            return session

    async def get_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def append_event(
        self,
        session_id: str,
        event_type: str,
        payload: Optional[dict[str, Any]] = None,
        timestamp: Optional[int] = None,
    ) -> Event:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            if session.is_completed:
                raise SessionClosed(session_id)

            if timestamp is None:
                timestamp = int(_utcnow().timestamp() * 1000)
            event = Event(
                session_id=session_id,
                event_type=event_type,
                payload=payload or {},
                timestamp=timestamp,
                sequence=len(session.events) + 1,
            )
            updated = session.model_copy(update={"events": [*session.events, event]})
            self._write(sessions=[updated])
            self._sessions[session_id] = updated
            return event

    async def complete_session(
        self,
        session_id: str,
        final_state: dict[str, Any],
        metrics: CognitiveMetrics,
    ) -> Session:
        """
        Move a session to its terminal state together with its metrics and
        fold the result into the owner's profile, all in one step. A second
        completion is rejected and leaves the first one untouched.
        """
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            if session.is_completed:
                raise SessionAlreadyCompleted(session_id)

            completed = session.model_copy(
                update={
                    "status": SessionStatus.COMPLETED,
                    "completed_at": _utcnow(),
                    "final_state": final_state,
                    "metrics": metrics,
                }
            )
            profile = self._profile_with(completed) if completed.user_id else None

            self._write(sessions=[completed], profiles=[profile] if profile else [])
            self._sessions[session_id] = completed
            if profile is not None:
                self._profiles[profile.user_id] = profile
            return completed

    def _profile_with(self, session: Session) -> CognitiveProfile:
        """The owner's profile with session appended; the stored one is not touched."""
        metrics = session.metrics
        current = self._profiles.get(session.user_id) or CognitiveProfile(user_id=session.user_id)
        summary = SessionSummary(
            session_id=session.session_id,
            puzzle_type=session.puzzle_type,
            archetype=metrics.archetype,
            score=metrics.score,
            completed_at=session.completed_at,
        )
        return current.model_copy(
            update={
                "archetype": metrics.archetype,
                "fingerprint": metrics.fingerprint,
                "sessions": [*current.sessions, summary],
                "updated_at": _utcnow(),
            }
        )

    def completed_sessions(self, archetype: Optional[str] = None) -> list[Session]:
        sessions = [
            s for s in self._sessions.values()
            if s.is_completed and s.metrics is not None
        ]
        if archetype:
            sessions = [s for s in sessions if s.metrics.archetype == archetype]
        return sessions

    def latest_completed_for(self, user_id: str) -> Optional[Session]:
        owned = [s for s in self.completed_sessions() if s.user_id == user_id]
        if not owned:
            return None
        return max(owned, key=lambda s: s.completed_at)

    # ---------- Profiles ----------

    async def get_profile(self, user_id: str) -> CognitiveProfile:
        profile = self._profiles.get(user_id)
        if profile is None:
            raise ProfileNotFound(user_id)
        return profile

    def find_profile(self, user_id: str) -> Optional[CognitiveProfile]:
        return self._profiles.get(user_id)

    # ---------- Shares ----------

    async def save_share(
        self,
        user_id: str,
        privacy_level: PrivacyLevel,
        profile_data: dict[str, Any],
    ) -> ShareRecord:
        async with self._lock:
            profile = self._profiles.get(user_id)
            share = ShareRecord(
                share_id=_new_id("share"),
                user_id=user_id,
                privacy_level=privacy_level,
                archetype=profile.archetype if profile else profile_data.get("archetype"),
                fingerprint=profile.fingerprint if profile else None,
                profile_data=profile_data,
            )
            self._write(share=share)
            # One live share per user; re-sharing replaces the previous record.
            for share_id, existing in list(self._shares.items()):
                if existing.user_id == user_id:
                    del self._shares[share_id]
            self._shares[share.share_id] = share
            return share

    def shares(self) -> list[ShareRecord]:
        return list(self._shares.values())

    # ---------- Aggregates ----------

    def stats(self) -> dict[str, Any]:
        completed = self.completed_sessions()
        return {
            "sessions": len(self._sessions),
            "completed_sessions": len(completed),
            "minds_analyzed": len({s.user_id for s in completed if s.user_id}),
            "archetype_distribution": dict(Counter(s.metrics.archetype for s in completed)),
        }
