"""
Best-effort interaction tracking.

Events are queued and sent by a single worker task, so they leave in the
order they were tracked. Delivery is at-most-once: a failed send is
logged and dropped, never retried and never raised to the caller.
"""

import asyncio
import contextlib
import logging
import time
from typing import Any, Optional

from cognitive_client.api import CognitiveAPI

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class EventTracker:
    def __init__(self, api: CognitiveAPI):
        self.api = api
        self.session_id: Optional[str] = None
        self.sent = 0
        self.dropped = 0
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

    def _ensure_worker(self) -> Optional[asyncio.Queue]:
        """The queue with a worker draining it, or None outside a running event loop."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._run())
        return self._queue

    async def start(self, session: dict[str, Any]) -> None:
        """Bind to a session and queue its session_start event."""
        self.session_id = session["sessionId"]
        self._ensure_worker()
        self.track("session_start", {"puzzleType": session.get("puzzleType")})

    def track(self, event_type: str, data: Optional[dict[str, Any]] = None) -> bool:
        """Queue one event. Returns False when it was dropped (no session, or no running loop)."""
        if self.session_id is None:
            logger.warning("Dropping %s event tracked before a session started", event_type)
            self.dropped += 1
            return False

        queue = self._ensure_worker()
        if queue is None:
            logger.warning("Dropping %s event tracked outside a running event loop", event_type)
            self.dropped += 1
            return False
        queue.put_nowait((
            self.session_id,
            {"eventType": event_type, "payload": data or {}, "timestamp": _now_ms()},
        ))
        return True

    async def _run(self) -> None:
        queue = self._queue
        while True:
            session_id, event = await queue.get()
            try:
                result = await self.api.track_event(session_id, event)
                if result is None:
                    self.dropped += 1
                else:
                    self.sent += 1
            except Exception:  # noqa: BLE001
                logger.exception("Tracking %s failed", event["eventType"])
                self.dropped += 1
            finally:
                queue.task_done()

    async def flush(self) -> None:
        """Wait until every queued event has been sent or dropped."""
        if self._queue is not None:
            await self._queue.join()

    async def aclose(self) -> None:
        await self.flush()
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None
        self._queue = None
