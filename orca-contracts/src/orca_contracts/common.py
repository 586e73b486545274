"""
Primitive field types shared by every Orca message envelope.

Session identifiers, timestamps and agent identifiers appear in almost every
envelope and payload. Defining them once here keeps the format checks (UUID
shape, ISO-8601 with a ``T`` separator, non-empty agent ids) identical across
the request and response sides of the protocol.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated

from pydantic import StringConstraints

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
ISO8601_PATTERN = (
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:\d{2})$"
)

SessionId = Annotated[str, StringConstraints(pattern=UUID_PATTERN)]
Timestamp = Annotated[str, StringConstraints(pattern=ISO8601_PATTERN)]
AgentId = Annotated[str, StringConstraints(min_length=1)]


def utc_timestamp() -> str:
    """Return the current UTC time as ISO-8601 with millisecond precision."""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


def new_session_id() -> str:
    """Return a fresh random (version 4) session identifier."""
    return str(uuid.uuid4())


__all__ = [
    "AgentId",
    "ISO8601_PATTERN",
    "SessionId",
    "Timestamp",
    "UUID_PATTERN",
    "new_session_id",
    "utc_timestamp",
]
