"""
Async client for the Cognitive Mirrors HTTP API.

Every operation issues one request and returns the parsed JSON body
unchanged. Failures surface as CognitiveAPIError:
  - application errors (non-2xx): the server's "message" (or FastAPI's
    "detail"), falling back to "HTTP <status>"
  - transport errors (no response): the transport's message, status_code=None

Two operations never raise: check_health() reports {"healthy": False,
"error": ...} and track_event() returns None, because neither may
interrupt the user's flow.
"""

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:4000/api"
DEFAULT_TIMEOUT = 10.0


class CognitiveAPIError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    @property
    def is_transport_error(self) -> bool:
        return self.status_code is None


class CognitiveAPI:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def __aenter__(self) -> "CognitiveAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ---------- Transport ----------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                params=params,
                headers=self.headers,
            )
        except httpx.HTTPError as exc:
            raise CognitiveAPIError(str(exc) or exc.__class__.__name__) from exc

        self._handle_error(response)
        try:
            return response.json()
        except ValueError as exc:
            raise CognitiveAPIError("Response is not valid JSON", status_code=response.status_code) from exc

    @staticmethod
    def _handle_error(response: httpx.Response) -> None:
        if response.is_success:
            return

        message = f"HTTP {response.status_code}"
        code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("message") or body.get("detail")
            if isinstance(detail, str) and detail:
                message = detail
            code = body.get("code")
        raise CognitiveAPIError(message, status_code=response.status_code, code=code)

    # ---------- Operations ----------

    async def check_health(self) -> dict[str, Any]:
        try:
            return await self._request("GET", "/health")
        except CognitiveAPIError as exc:
            logger.error("Health check error: %s", exc.message)
            return {"healthy": False, "error": exc.message}

    async def get_version(self) -> dict[str, Any]:
        return await self._request("GET", "/version")

    async def create_session(self, session_data: dict[str, Any]) -> dict[str, Any]:
        try:
            return await self._request("POST", "/cognitive/session/start", json=session_data)
        except CognitiveAPIError as exc:
            logger.error("Session creation error: %s", exc.message)
            raise

    async def track_event(self, session_id: str, event_data: dict[str, Any]) -> Optional[dict[str, Any]]:
        try:
            return await self._request(
                "POST",
                "/cognitive/event",
                json={"sessionId": session_id, **event_data},
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Event tracking error: %s", exc)
            return None

    async def complete_session(self, session_id: str, final_state: dict[str, Any]) -> dict[str, Any]:
        try:
            return await self._request(
                "POST",
                "/cognitive/session/complete",
                json={"sessionId": session_id, "finalState": final_state},
            )
        except CognitiveAPIError as exc:
            logger.error("Session completion error: %s", exc.message)
            raise

    async def get_comparative_insights(self, user_id: str, archetype: Optional[str] = None) -> dict[str, Any]:
        params = {"archetype": archetype} if archetype else None
        return await self._request("GET", f"/cognitive/comparative/{user_id}", params=params)

    async def get_visualization(self, session_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/cognitive/visualization/{session_id}")

    async def share_profile(self, profile_data: dict[str, Any], privacy_level: str = "public") -> dict[str, Any]:
        return await self._request(
            "POST",
            "/cognitive/share",
            json={"profileData": profile_data, "privacyLevel": privacy_level},
        )

    async def find_cognitive_matches(self, user_id: str, desired_interaction: str = "similar") -> dict[str, Any]:
        return await self._request(
            "POST",
            "/cognitive/match",
            json={"userId": user_id, "desiredInteraction": desired_interaction},
        )

    async def get_recommendation(self, user_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/cognitive/recommendation/{user_id}")

    async def get_stats(self) -> dict[str, Any]:
        return await self._request("GET", "/cognitive/stats")
