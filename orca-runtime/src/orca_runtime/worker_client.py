"""
HTTP implementation of the ``WorkerClient`` capability.

The worker host exposes a small REST API: ``POST /session`` opens a session
and ``POST /session/{id}/message`` runs a prompt against a named agent in that
session, answering with the ordered response parts. This client maps those
calls onto the ``WorkerClient`` protocol used by the dispatcher.

Transport failures propagate as ``httpx`` exceptions so the dispatcher can
report them as agent errors. A non-success status when opening a session is
reported as "no session" instead, which the dispatcher maps to
``SESSION_NOT_FOUND``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

LOGGER = logging.getLogger(__name__)
DEFAULT_TIMEOUT_SECONDS = 300.0


class HttpWorkerClient:
    """
    Talks to the worker host over HTTP.

    The underlying ``httpx.AsyncClient`` is created lazily and closed by
    ``aclose`` or on leaving the async context manager.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        directory: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            base_url: Base URL of the worker host.
            timeout: Timeout in seconds for each request.
            directory: Project directory forwarded to the host, if it needs one.
            transport: Custom transport, mainly for tests.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout if timeout > 0 else DEFAULT_TIMEOUT_SECONDS
        self._params = {"directory": directory} if directory else None
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HttpWorkerClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def create_session(self) -> Optional[str]:
        client = self._ensure_client()
        response = await client.post("/session", json={}, params=self._params)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.warning("Worker host refused to create a session: %s", exc)
            return None

        data = response.json()
        session_id = data.get("id") if isinstance(data, dict) else None
        if not session_id:
            LOGGER.warning("Worker host returned a session without an id")
            return None
        return str(session_id)

    async def send_prompt(
        self, session_id: str, agent_id: str, text: str
    ) -> List[Mapping[str, Any]]:
        client = self._ensure_client()
        body: Dict[str, Any] = {
            "agent": agent_id,
            "parts": [{"type": "text", "text": text}],
        }
        response = await client.post(
            f"/session/{session_id}/message", json=body, params=self._params
        )
        response.raise_for_status()

        data = response.json()
        parts = data.get("parts") if isinstance(data, dict) else None
        if not isinstance(parts, list):
            return []
        return [part for part in parts if isinstance(part, dict)]


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "HttpWorkerClient"]
