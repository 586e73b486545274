"""
Payload models for every Orca message type.

Each envelope ``type`` maps to exactly one payload model defined here. All
payloads are strict: unknown keys are rejected so that a malformed worker
response can never be mistaken for a different variant.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import AgentId, SessionId
from .errors import ErrorCode


class StrictModel(BaseModel):
    """Base for protocol models: unknown keys are rejected, instances are frozen."""

    model_config = ConfigDict(extra="forbid", frozen=True)


# -- request payloads ---------------------------------------------------------


class TaskPayload(StrictModel):
    """A unit of work the orchestrator dispatches to a specialist agent."""

    agent_id: AgentId = Field(..., description="Identifier of the target agent.")
    prompt: str = Field(..., description="Instructions for the agent.")
    context: Optional[Any] = Field(
        default=None,
        description="Arbitrary structured data forwarded alongside the prompt.",
    )
    parent_session_id: Optional[SessionId] = Field(
        default=None,
        description="Existing worker session to continue instead of opening a new one.",
    )


class UserInputPayload(StrictModel):
    """A human reply, typically answering a question or an escalation."""

    content: str = Field(..., min_length=1)
    decision_id: Optional[str] = Field(
        default=None,
        description="Escalation decision this input answers, if any.",
    )
    value: Optional[str] = Field(
        default=None,
        description="Option value selected for the referenced decision.",
    )


class InterruptPayload(StrictModel):
    reason: Optional[str] = None


# -- response payloads --------------------------------------------------------


class Source(StrictModel):
    """A reference backing an answer."""

    type: Literal["file", "url", "api", "database"]
    ref: str = Field(..., min_length=1)
    title: Optional[str] = None
    excerpt: Optional[str] = None


class Annotation(StrictModel):
    type: Literal["note", "warning", "assumption"]
    text: str = Field(..., min_length=1)


class AnswerPayload(StrictModel):
    agent_id: AgentId
    content: str
    sources: Optional[List[Source]] = None
    annotations: Optional[List[Annotation]] = None


class PlanStep(StrictModel):
    description: str = Field(..., min_length=1)
    command: Optional[str] = Field(
        default=None,
        description="Agent expected to carry out the step.",
    )


class PlanContext(StrictModel):
    research_summary: Optional[str] = None
    key_decisions: Optional[List[str]] = None


class PlanPayload(StrictModel):
    """A multi-step execution proposal that normally needs approval."""

    agent_id: AgentId
    goal: str = Field(..., min_length=1)
    steps: List[PlanStep] = Field(..., min_length=1)
    assumptions: Optional[List[str]] = None
    files_touched: Optional[List[str]] = None
    verification: Optional[List[str]] = None
    risks: Optional[List[str]] = None
    context: Optional[PlanContext] = None


class QuestionPayload(StrictModel):
    agent_id: AgentId
    question: str = Field(..., min_length=1)
    options: Optional[List[str]] = None
    blocking: bool = True


class EscalationOption(StrictModel):
    label: str = Field(..., min_length=1)
    value: str = Field(..., min_length=1)


class EscalationPayload(StrictModel):
    """
    A decision that must be taken by a human before the flow continues.

    Options are presented in the order given.
    """

    agent_id: AgentId
    decision_id: str = Field(..., min_length=1)
    decision: str = Field(..., min_length=1)
    options: List[EscalationOption] = Field(..., min_length=1)
    context: str


class FailurePayload(StrictModel):
    """Describes why a request could not be completed."""

    agent_id: Optional[AgentId] = None
    code: ErrorCode
    message: str
    cause: Optional[str] = None


class CheckpointPayload(StrictModel):
    """Pause point emitted by a supervised agent before continuing a plan."""

    agent_id: AgentId
    prompt: str = Field(..., min_length=1)
    step_index: Optional[int] = Field(default=None, ge=0)
    plan_goal: Optional[str] = None


class ResultPayload(StrictModel):
    """Generic completion, used when plain worker text is wrapped."""

    agent_id: AgentId
    content: str


PAYLOAD_MODELS: Dict[str, type[StrictModel]] = {
    "task": TaskPayload,
    "user_input": UserInputPayload,
    "interrupt": InterruptPayload,
    "answer": AnswerPayload,
    "plan": PlanPayload,
    "question": QuestionPayload,
    "escalation": EscalationPayload,
    "failure": FailurePayload,
    "checkpoint": CheckpointPayload,
    "result": ResultPayload,
}


__all__ = [
    "Annotation",
    "AnswerPayload",
    "CheckpointPayload",
    "EscalationOption",
    "EscalationPayload",
    "FailurePayload",
    "InterruptPayload",
    "PAYLOAD_MODELS",
    "PlanContext",
    "PlanPayload",
    "PlanStep",
    "QuestionPayload",
    "ResultPayload",
    "Source",
    "StrictModel",
    "TaskPayload",
    "UserInputPayload",
]
