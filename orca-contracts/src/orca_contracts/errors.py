"""
Closed set of failure codes carried by ``failure`` envelopes.

Every code has a fixed retryability classification. The classification lives
in ``ERROR_RETRYABILITY`` as plain data so that the retry policy can be audited
and tested without reading any control flow.
"""
from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class ErrorCode(str, Enum):
    """
    Enumeration of the failure codes recognised by the Orca protocol.

    Attributes:
        VALIDATION_ERROR: A message did not conform to the protocol.
        UNKNOWN_AGENT: The target agent is not registered.
        SESSION_NOT_FOUND: A worker session could not be created or resolved.
        AGENT_ERROR: Generic failure while executing the worker.
        TIMEOUT: The request was cancelled or exceeded its time budget.
        AUTONOMY_BLOCKED: The autonomy policy vetoed the action.
        APPROVAL_REQUIRED: The action is waiting on a human decision.
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_AGENT = "UNKNOWN_AGENT"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    AGENT_ERROR = "AGENT_ERROR"
    TIMEOUT = "TIMEOUT"
    AUTONOMY_BLOCKED = "AUTONOMY_BLOCKED"
    APPROVAL_REQUIRED = "APPROVAL_REQUIRED"


ERROR_RETRYABILITY: Mapping[ErrorCode, bool] = MappingProxyType(
    {
        ErrorCode.AGENT_ERROR: True,
        ErrorCode.TIMEOUT: True,
        ErrorCode.VALIDATION_ERROR: True,
        ErrorCode.UNKNOWN_AGENT: False,
        ErrorCode.SESSION_NOT_FOUND: False,
        ErrorCode.AUTONOMY_BLOCKED: False,
        ErrorCode.APPROVAL_REQUIRED: False,
    }
)

RETRYABLE_ERROR_CODES = frozenset(code for code, ok in ERROR_RETRYABILITY.items() if ok)
NON_RETRYABLE_ERROR_CODES = frozenset(
    code for code, ok in ERROR_RETRYABILITY.items() if not ok
)


def is_retryable(code: ErrorCode | str) -> bool:
    """
    Look up whether a failure code may be retried.

    Unrecognised codes are treated as non-retryable.
    """
    try:
        return ERROR_RETRYABILITY[ErrorCode(code)]
    except ValueError:
        return False


__all__ = [
    "ERROR_RETRYABILITY",
    "ErrorCode",
    "NON_RETRYABLE_ERROR_CODES",
    "RETRYABLE_ERROR_CODES",
    "is_retryable",
]
