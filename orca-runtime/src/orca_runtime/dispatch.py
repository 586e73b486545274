"""
Dispatch of task envelopes to specialist agents.

``dispatch_to_agent`` is the single public entry point of the runtime. It
composes the protocol, classifier, gate, validation and retry layers around
an external ``WorkerClient``:

    parse task -> check registry -> classify -> gate -> execute
    -> validate (with correction loop) -> retry failures -> serialise

It never raises for ordinary failures; every error path produces a serialised
``failure`` envelope so the caller always receives JSON.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence, Union

from pydantic import ValidationError

from orca_contracts import (
    ErrorCode,
    FailureMessage,
    MessageEnvelope,
    TaskMessage,
    dump_message,
)

from .autonomy import (
    DEFAULT_AUTONOMY_CONFIG,
    DEFAULT_CLASSIFICATION_RULES,
    AutonomyConfig,
    ClassificationRules,
    classify_action,
    determine_gate,
)
from .config.agents import AgentConfig
from .gates import GateContext, enforce_pre_dispatch_gate, transform_response
from .retry import execute_with_retry
from .types import DEFAULT_VALIDATION_CONFIG, ValidationConfig
from .validation import create_failure_message, format_validation_errors, validate_with_retry

LOGGER = logging.getLogger(__name__)


class WorkerClient(Protocol):
    """
    Capability for running prompts against worker agents.

    ``create_session`` returns the new session id, or ``None`` when the host
    could not create one. ``send_prompt`` returns the ordered response
    fragments, each a mapping with a ``type`` and, for text, a ``text`` key.
    """

    async def create_session(self) -> Optional[str]:
        ...

    async def send_prompt(
        self, session_id: str, agent_id: str, text: str
    ) -> Sequence[Mapping[str, Any]]:
        ...


class AbortSignal(Protocol):
    def is_set(self) -> bool:
        ...


@dataclass
class DispatchContext:
    """
    Everything a dispatch needs besides the task itself.

    Attributes:
        client: Worker client used to create sessions and send prompts.
        agents: Registry of dispatchable agents.
        validation_config: Correction budget and plain-text policy.
        autonomy_config: Autonomy level and retry budget.
        classification_rules: Agent sets and patterns for the classifier.
        abort: Cancellation flag, consulted when an exception escapes.
        logger: Destination for dispatch logs; defaults to this module's logger.
    """

    client: WorkerClient
    agents: Mapping[str, AgentConfig]
    validation_config: ValidationConfig = DEFAULT_VALIDATION_CONFIG
    autonomy_config: AutonomyConfig = DEFAULT_AUTONOMY_CONFIG
    classification_rules: ClassificationRules = DEFAULT_CLASSIFICATION_RULES
    abort: Optional[AbortSignal] = None
    logger: logging.Logger = LOGGER


def extract_text(parts: Iterable[Mapping[str, Any]]) -> str:
    """Join the ``text`` of text fragments with newlines, ignoring other fragments."""
    return "\n".join(
        str(part["text"])
        for part in parts
        if part.get("type") == "text" and part.get("text") is not None
    )


def parse_task_message(
    message: Union[str, bytes, Mapping[str, Any]],
) -> Union[TaskMessage, str]:
    """Return the parsed task, or an error description when it is invalid."""
    try:
        if isinstance(message, (str, bytes)):
            return TaskMessage.model_validate_json(message)
        return TaskMessage.model_validate(message)
    except ValidationError as exc:
        if any(detail["type"] == "json_invalid" for detail in exc.errors()):
            return "Message is not valid JSON"
        return format_validation_errors(exc)


async def _execute_dispatch(task: TaskMessage, ctx: DispatchContext) -> MessageEnvelope:
    agent_id = task.payload.agent_id
    session_id = task.payload.parent_session_id

    if session_id is None:
        session_id = await ctx.client.create_session()
        if not session_id:
            return create_failure_message(
                ErrorCode.SESSION_NOT_FOUND,
                "Failed to create session",
                "Session creation returned no ID",
                agent_id=agent_id,
            )
        ctx.logger.debug("Created session %s for %s", session_id, agent_id)

    parts = await ctx.client.send_prompt(session_id, agent_id, task.payload.prompt)
    response_text = extract_text(parts)
    if not response_text:
        return create_failure_message(
            ErrorCode.AGENT_ERROR,
            "Agent returned empty response",
            f"Agent {agent_id} produced no text output",
            agent_id=agent_id,
        )

    async def send_correction(correction_prompt: str) -> str:
        retry_parts = await ctx.client.send_prompt(session_id, agent_id, correction_prompt)
        return extract_text(retry_parts)

    return await validate_with_retry(
        response_text,
        agent_id,
        ctx.validation_config,
        send_correction,
    )


async def dispatch_to_agent(
    message: Union[str, bytes, Mapping[str, Any]],
    ctx: DispatchContext,
) -> str:
    """
    Dispatch a task envelope to a specialist agent.

    Args:
        message: Task envelope as JSON text or an already-decoded mapping.
        ctx: Dispatch context.

    Returns:
        The response envelope serialised as JSON.
    """
    log = ctx.logger
    autonomy = ctx.autonomy_config

    task = parse_task_message(message)
    if isinstance(task, str):
        log.warning("Rejected malformed task message: %s", task.splitlines()[0])
        return dump_message(
            create_failure_message(
                ErrorCode.VALIDATION_ERROR,
                "Invalid task message format",
                task,
            )
        )

    agent_id = task.payload.agent_id
    if agent_id not in ctx.agents:
        available = ", ".join(ctx.agents)
        log.warning("Unknown agent %r requested (available: %s)", agent_id, available)
        return dump_message(
            create_failure_message(
                ErrorCode.UNKNOWN_AGENT,
                f"Unknown agent: {agent_id}",
                f"Available agents: {available}",
            )
        )

    classification = classify_action(task, ctx.agents, ctx.classification_rules)
    decision = determine_gate(autonomy.level, classification)
    log.info(
        "Task for %s classified %s under %s autonomy: %s",
        agent_id,
        classification.value,
        autonomy.level.value,
        decision.value,
    )

    gate = enforce_pre_dispatch_gate(
        GateContext(
            task=task,
            autonomy_level=autonomy.level,
            classification=classification,
            decision=decision,
        )
    )
    if not gate.allowed and gate.response is not None:
        log.info("Dispatch to %s stopped at gate (%s)", agent_id, gate.response.type)
        return dump_message(gate.response)

    try:
        result = await _execute_dispatch(task, ctx)

        if isinstance(result, FailureMessage):
            log.info(
                "Dispatch to %s failed with %s", agent_id, result.payload.code.value
            )
            result = await execute_with_retry(
                result,
                autonomy.level,
                autonomy.max_retries,
                lambda: _execute_dispatch(task, ctx),
            )

        result = transform_response(result, autonomy.level, classification)
        return dump_message(result)
    except Exception as exc:  # noqa: BLE001
        if ctx.abort is not None and ctx.abort.is_set():
            log.warning("Dispatch to %s aborted", agent_id)
            return dump_message(
                create_failure_message(
                    ErrorCode.TIMEOUT,
                    "Request timed out or was cancelled",
                    agent_id=agent_id,
                )
            )
        log.error("Dispatch to %s failed: %s", agent_id, exc)
        log.debug("Dispatch failure traceback", exc_info=True)
        return dump_message(
            create_failure_message(
                ErrorCode.AGENT_ERROR,
                "Agent execution failed",
                str(exc) or exc.__class__.__name__,
                agent_id=agent_id,
            )
        )


__all__ = [
    "AbortSignal",
    "DispatchContext",
    "WorkerClient",
    "dispatch_to_agent",
    "extract_text",
    "parse_task_message",
]
