"""
Registry of questions awaiting a human answer.

When a blocking ``question`` or an approval ``escalation`` is presented to the
user, the caller registers the request id and awaits the returned future. The
host's reply or rejection events resolve it. Entries are removed as soon as
they resolve, so nothing lingers after the answer arrives.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

LOGGER = logging.getLogger(__name__)


class QuestionResult(BaseModel):
    """
    Outcome of a pending question.

    Attributes:
        type: ``answered`` when the user replied, ``rejected`` when they dismissed it.
        answers: Selected labels, one list per asked question. Empty when rejected.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["answered", "rejected"]
    answers: List[List[str]] = Field(default_factory=list)


class QuestionRegistry:
    """Maps request ids to the futures their askers are waiting on."""

    def __init__(self) -> None:
        self._pending: Dict[str, asyncio.Future[QuestionResult]] = {}

    def register(self, request_id: str) -> asyncio.Future[QuestionResult]:
        """Create the future for ``request_id``; must be called inside a running loop."""
        if request_id in self._pending:
            raise ValueError(f"Question {request_id!r} is already pending")
        future: asyncio.Future[QuestionResult] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        LOGGER.debug("Registered pending question %s", request_id)
        return future

    async def wait_for(self, request_id: str) -> QuestionResult:
        """
        Register ``request_id`` and wait for its answer.

        The entry is dropped when the waiter goes away, so a cancelled wait can
        be registered again.
        """
        future = self.register(request_id)
        try:
            return await future
        finally:
            if self._pending.get(request_id) is future:
                del self._pending[request_id]

    def handle_replied(self, request_id: str, answers: List[List[str]]) -> None:
        future = self._pending.pop(request_id, None)
        if future is None:
            LOGGER.warning("No pending question found for %s", request_id)
            return
        if not future.done():
            future.set_result(QuestionResult(type="answered", answers=answers))
        LOGGER.info("Resolved pending question %s", request_id)

    def handle_rejected(self, request_id: str) -> None:
        future = self._pending.pop(request_id, None)
        if future is None:
            LOGGER.warning("No pending question found for %s", request_id)
            return
        if not future.done():
            future.set_result(QuestionResult(type="rejected"))
        LOGGER.info("Question %s rejected", request_id)

    def cancel(self, request_id: str) -> bool:
        """Cancel and forget a pending question. Returns False if it was unknown."""
        future = self._pending.pop(request_id, None)
        if future is None:
            return False
        future.cancel()
        LOGGER.debug("Cancelled pending question %s", request_id)
        return True

    def pending_ids(self) -> List[str]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending


__all__ = ["QuestionRegistry", "QuestionResult"]
