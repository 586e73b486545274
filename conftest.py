"""
Project-wide pytest fixtures.

Shared by the contract tests, the runtime tests and the end-to-end tests under
``tests/``. Every test runs with ``ORCA_*`` variables cleared and the cached
settings reset, so the developer's environment never leaks into assertions.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Dict

import pytest

from orca_contracts import new_session_id, utc_timestamp
from orca_runtime.config import get_settings


@pytest.fixture(autouse=True)
def isolated_orca_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Clear ``ORCA_*`` variables and point the config dir at an empty directory."""
    for key in list(os.environ):
        if key.startswith("ORCA_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ORCA_CONFIG_DIR", str(tmp_path / "no-config"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def make_task() -> Callable[..., Dict[str, Any]]:
    """Factory for task envelopes as plain dicts."""

    def _make(agent_id: str = "coder", prompt: str = "Implement the parser", **payload: Any) -> Dict[str, Any]:
        return {
            "type": "task",
            "session_id": new_session_id(),
            "timestamp": utc_timestamp(),
            "payload": {"agent_id": agent_id, "prompt": prompt, **payload},
        }

    return _make


@pytest.fixture
def answer_json() -> Callable[..., str]:
    """Factory for a valid ``answer`` response as raw JSON text."""

    def _make(agent_id: str = "coder", content: str = "Done.") -> str:
        return (
            '{"type": "answer", "timestamp": "%s", '
            '"payload": {"agent_id": "%s", "content": "%s"}}'
        ) % (utc_timestamp(), agent_id, content)

    return _make
