"""
Mock mode support for the Orca runtime.

This module provides an in-memory ``WorkerClient`` that replays scripted
responses, allowing the dispatcher to run without a worker host.

Usage:
    Set ORCA_MOCK_MODE=true, or pass ``--mock-response`` on the command line,
    to dispatch against ``ScriptedWorkerClient`` instead of the HTTP client.

Example:
    ORCA_MOCK_MODE=true python -m orca_runtime dispatch task.json
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

LOGGER = logging.getLogger(__name__)

MOCK_SESSION_ID = "mock-session"

ScriptedResponse = Union[str, BaseException]


def is_mock_mode_enabled() -> bool:
    """Check if mock mode is enabled via environment variable."""
    value = os.environ.get("ORCA_MOCK_MODE", "").strip().lower()
    return value in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RecordedPrompt:
    session_id: str
    agent_id: str
    text: str


class ScriptedWorkerClient:
    """
    Worker client that answers prompts from a fixed script.

    Each ``send_prompt`` call consumes the next scripted entry. A string is
    returned as a single text fragment (an empty string yields no fragments);
    an exception instance is raised. When the script runs out the last entry
    is repeated.

    Args:
        responses: Scripted entries, in order.
        session_id: Id returned by ``create_session``; ``None`` simulates a
            host that cannot create sessions.
    """

    def __init__(
        self,
        responses: Iterable[ScriptedResponse] = (),
        *,
        session_id: Optional[str] = MOCK_SESSION_ID,
    ) -> None:
        self._responses: List[ScriptedResponse] = list(responses)
        self._session_id = session_id
        self._cursor = 0
        self.prompts: List[RecordedPrompt] = []
        self.sessions_created = 0

    @property
    def prompt_count(self) -> int:
        return len(self.prompts)

    async def create_session(self) -> Optional[str]:
        self.sessions_created += 1
        return self._session_id

    async def send_prompt(
        self, session_id: str, agent_id: str, text: str
    ) -> List[Mapping[str, Any]]:
        self.prompts.append(RecordedPrompt(session_id, agent_id, text))
        if not self._responses:
            LOGGER.debug("No scripted responses left for %s", agent_id)
            return []

        index = min(self._cursor, len(self._responses) - 1)
        self._cursor += 1
        entry = self._responses[index]
        if isinstance(entry, BaseException):
            raise entry
        if not entry:
            return []
        part: Dict[str, Any] = {"type": "text", "text": entry}
        return [part]


__all__ = [
    "MOCK_SESSION_ID",
    "RecordedPrompt",
    "ScriptedResponse",
    "ScriptedWorkerClient",
    "is_mock_mode_enabled",
]
