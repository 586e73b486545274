"""
Pre-dispatch enforcement of autonomy gate decisions.

The gate decision itself is computed by ``orca_runtime.autonomy``; this module
turns it into either permission to dispatch or a terminal response for the
orchestrator: an ``escalation`` asking a human for approval, or a ``failure``
explaining the policy veto. Rejections never touch the worker.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from orca_contracts import (
    ORCHESTRATOR_AGENT_ID,
    ErrorCode,
    EscalationMessage,
    FailureMessage,
    MessageEnvelope,
    TaskMessage,
    utc_timestamp,
)

from .types import ActionClassification, AutonomyLevel, GateDecision
from .validation import create_failure_message

APPROVAL_OPTIONS = (
    {"label": "Approve", "value": "approve"},
    {"label": "Reject", "value": "reject"},
    {"label": "Approve All (switch to autonomous)", "value": "approve_all"},
)


@dataclass(frozen=True)
class GateContext:
    task: TaskMessage
    autonomy_level: AutonomyLevel
    classification: ActionClassification
    decision: GateDecision | str


@dataclass(frozen=True)
class PreDispatchResult:
    """``allowed`` is True when dispatch may proceed; otherwise ``response`` is set."""

    allowed: bool
    response: Optional[Union[FailureMessage, EscalationMessage]] = None


def _value(member: object) -> str:
    return getattr(member, "value", str(member))


def approval_decision_id(task: TaskMessage) -> str:
    """Deterministic id so the same escalation can be re-presented idempotently."""
    return f"approval-{task.session_id}"


def create_blocked_failure(ctx: GateContext) -> FailureMessage:
    agent_id = ctx.task.payload.agent_id
    classification = _value(ctx.classification)
    level = _value(ctx.autonomy_level)
    return create_failure_message(
        ErrorCode.AUTONOMY_BLOCKED,
        f"Operation blocked: {classification} action not permitted in {level} mode",
        (
            f'The operation targeting agent "{agent_id}" was classified as '
            f'"{classification}" and is blocked under the current autonomy level "{level}".'
        ),
        agent_id=agent_id,
    )


def create_approval_escalation(ctx: GateContext) -> EscalationMessage:
    agent_id = ctx.task.payload.agent_id
    classification = _value(ctx.classification)
    level = _value(ctx.autonomy_level)
    context = (
        f"**Target Agent**: {agent_id}\n"
        f"**Action Type**: {classification}\n"
        f"**Autonomy Level**: {level}\n"
        "\n"
        "**Task Prompt**:\n"
        f"{ctx.task.payload.prompt}\n"
        "\n"
        "This action requires user approval under the current autonomy settings."
    )
    return EscalationMessage(
        type="escalation",
        session_id=ctx.task.session_id,
        timestamp=utc_timestamp(),
        payload={
            "agent_id": ORCHESTRATOR_AGENT_ID,
            "decision_id": approval_decision_id(ctx.task),
            "decision": f"Approve {classification} action to {agent_id}?",
            "options": list(APPROVAL_OPTIONS),
            "context": context,
        },
    )


def enforce_pre_dispatch_gate(ctx: GateContext) -> PreDispatchResult:
    """
    Enforce a gate decision.

    ``proceed`` allows dispatch, ``block`` yields an ``AUTONOMY_BLOCKED``
    failure, and ``require_approval`` (or any unrecognised decision) yields an
    approval escalation.
    """
    try:
        decision = GateDecision(ctx.decision)
    except ValueError:
        decision = GateDecision.REQUIRE_APPROVAL

    if decision is GateDecision.PROCEED:
        return PreDispatchResult(allowed=True)
    if decision is GateDecision.BLOCK:
        return PreDispatchResult(allowed=False, response=create_blocked_failure(ctx))
    return PreDispatchResult(allowed=False, response=create_approval_escalation(ctx))


def transform_response(
    response: MessageEnvelope,
    level: AutonomyLevel,
    classification: ActionClassification,
) -> MessageEnvelope:
    """
    Post-dispatch hook for adjusting a response by autonomy context.

    Gating happens before dispatch, so this currently returns the response
    unchanged.
    """
    return response


__all__ = [
    "APPROVAL_OPTIONS",
    "GateContext",
    "PreDispatchResult",
    "approval_decision_id",
    "create_approval_escalation",
    "create_blocked_failure",
    "enforce_pre_dispatch_gate",
    "transform_response",
]
