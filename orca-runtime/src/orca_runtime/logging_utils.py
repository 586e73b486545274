"""
Log routing for the ``orca`` command and for hosts embedding the dispatch core.

The dispatch pipeline writes its records (gating decisions, correction
prompts, retry attempts) to module loggers under ``orca_runtime``, or to the
logger a host injects through ``DispatchContext.logger``. None of that
installs handlers; ``configure_logging`` is the one place that does, and only
the CLI calls it. The CLI points it at stderr because stdout carries nothing
but the JSON response envelope.

Environment:

- ``ORCA_LOG_LEVEL``: root level, ``INFO`` when unset or unrecognised.
- ``ORCA_LOG_FORMAT``: ``logging.Formatter`` pattern for each record.

The worker client's httpx transport logs every request at INFO; those loggers
are held at WARNING unless a higher level is requested.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Final, Optional, TextIO

DEFAULT_FORMAT: Final[str] = os.environ.get(
    "ORCA_LOG_FORMAT",
    "%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"
_CONFIGURED: bool = False


def _resolve_level(name: str | None) -> int:
    if not name:
        return logging.INFO
    normalized = name.strip().upper()
    level = getattr(logging, normalized, logging.INFO)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(*, force: bool = False, stream: Optional[TextIO] = None) -> None:
    """
    Attach a single stream handler to the root logger.

    Repeated calls are no-ops unless ``force`` is set.

    Args:
        force: Drop existing root handlers and configure again.
        stream: Where records go; defaults to stdout. ``orca dispatch`` passes
            stderr so its stdout stays a single envelope.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    root_logger = logging.getLogger()
    if force:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)

    level = _resolve_level(os.environ.get("ORCA_LOG_LEVEL"))
    root_logger.setLevel(level)

    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT))
    root_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(max(logging.WARNING, level))
    logging.getLogger("httpcore").setLevel(max(logging.WARNING, level))

    _CONFIGURED = True
