"""
Post-dispatch recovery from failure responses.

After a dispatch produces a ``failure`` envelope, ``execute_with_retry`` decides,
attempt by attempt, whether the failure may be retried automatically under
the active autonomy level, and re-runs the dispatch while the decision allows
it. Retryability per failure code is fixed data in
``orca_contracts.ERROR_RETRYABILITY``; this module only combines it with the
autonomy level and the attempt budget.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from orca_contracts import FailureMessage, MessageEnvelope, is_retryable

from .types import AutonomyLevel

LOGGER = logging.getLogger(__name__)

RetryExecutor = Callable[[], Awaitable[MessageEnvelope]]


@dataclass(frozen=True)
class RetryContext:
    failure: FailureMessage
    autonomy_level: AutonomyLevel | str
    attempts: int
    max_retries: int


@dataclass(frozen=True)
class RetryDecision:
    should_retry: bool
    reason: str


def should_auto_retry(ctx: RetryContext) -> RetryDecision:
    """
    Decide whether a failure should be retried without asking a human.

    - Non-retryable codes are never retried.
    - Supervised mode never retries; failures are surfaced to the user.
    - Assisted and autonomous modes retry retryable codes while the attempt
      budget lasts.
    """
    code = ctx.failure.payload.code
    code_name = getattr(code, "value", code)

    if not is_retryable(code):
        return RetryDecision(False, f"Error code {code_name} is not retryable")

    try:
        level = AutonomyLevel(ctx.autonomy_level)
    except ValueError:
        return RetryDecision(False, f"Unknown autonomy level: {ctx.autonomy_level}")

    if level is AutonomyLevel.SUPERVISED:
        return RetryDecision(
            False, "Supervised mode requires user confirmation for all failures"
        )

    if ctx.attempts >= ctx.max_retries:
        return RetryDecision(
            False, f"Maximum retry attempts ({ctx.max_retries}) exceeded"
        )

    return RetryDecision(
        True,
        f"Auto-retrying {code_name} in {level.value} mode "
        f"(attempt {ctx.attempts + 1}/{ctx.max_retries})",
    )


async def execute_with_retry(
    failure: FailureMessage,
    autonomy_level: AutonomyLevel | str,
    max_retries: int,
    executor: RetryExecutor,
) -> MessageEnvelope:
    """
    Re-run a failed dispatch while the retry policy allows it.

    Returns the first non-failure result, or the last failure seen once the
    policy stops retrying or the budget is spent. The executor is never called
    for a non-retryable failure.

    Args:
        failure: The failure that triggered recovery.
        autonomy_level: Current autonomy level.
        max_retries: Maximum number of executor invocations.
        executor: Re-runs the dispatch and returns its response.
    """
    current = failure
    attempts = 0

    while attempts < max_retries:
        decision = should_auto_retry(
            RetryContext(
                failure=current,
                autonomy_level=autonomy_level,
                attempts=attempts,
                max_retries=max_retries,
            )
        )
        if not decision.should_retry:
            LOGGER.info("Not retrying: %s", decision.reason)
            return current

        LOGGER.info(decision.reason)
        attempts += 1
        result = await executor()
        if not isinstance(result, FailureMessage):
            return result
        current = result

    return current


__all__ = [
    "RetryContext",
    "RetryDecision",
    "RetryExecutor",
    "execute_with_retry",
    "should_auto_retry",
]
