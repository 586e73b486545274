"""
This package defines the message protocol spoken between the Orca orchestrator
and the specialist agents it dispatches work to.

It is the single source of truth for the envelope shapes, payload shapes and
failure codes exchanged on the wire. The models are Pydantic-based and strict:
unknown keys are rejected and every envelope ``type`` determines exactly one
payload shape. The package performs no I/O and has no knowledge of autonomy
policy; those concerns live in ``orca_runtime``.
"""
from .common import (
    AgentId,
    SessionId,
    Timestamp,
    new_session_id,
    utc_timestamp,
)
from .errors import (
    ERROR_RETRYABILITY,
    NON_RETRYABLE_ERROR_CODES,
    RETRYABLE_ERROR_CODES,
    ErrorCode,
    is_retryable,
)
from .messages import (
    MESSAGE_ADAPTER,
    MESSAGE_TYPES,
    ORCHESTRATOR_AGENT_ID,
    REQUEST_TYPES,
    RESPONSE_TYPES,
    AnswerMessage,
    CheckpointMessage,
    EscalationMessage,
    FailureMessage,
    InterruptMessage,
    MessageEnvelope,
    PlanMessage,
    QuestionMessage,
    ResultMessage,
    TaskMessage,
    UserInputMessage,
    dump_message,
    parse_message,
)
from .payloads import (
    Annotation,
    AnswerPayload,
    CheckpointPayload,
    EscalationOption,
    EscalationPayload,
    FailurePayload,
    InterruptPayload,
    PlanContext,
    PlanPayload,
    PlanStep,
    QuestionPayload,
    ResultPayload,
    Source,
    TaskPayload,
    UserInputPayload,
)

__all__ = [
    "AgentId",
    "SessionId",
    "Timestamp",
    "new_session_id",
    "utc_timestamp",
    "ERROR_RETRYABILITY",
    "NON_RETRYABLE_ERROR_CODES",
    "RETRYABLE_ERROR_CODES",
    "ErrorCode",
    "is_retryable",
    "MESSAGE_ADAPTER",
    "MESSAGE_TYPES",
    "ORCHESTRATOR_AGENT_ID",
    "REQUEST_TYPES",
    "RESPONSE_TYPES",
    "AnswerMessage",
    "CheckpointMessage",
    "EscalationMessage",
    "FailureMessage",
    "InterruptMessage",
    "MessageEnvelope",
    "PlanMessage",
    "QuestionMessage",
    "ResultMessage",
    "TaskMessage",
    "UserInputMessage",
    "dump_message",
    "parse_message",
    "Annotation",
    "AnswerPayload",
    "CheckpointPayload",
    "EscalationOption",
    "EscalationPayload",
    "FailurePayload",
    "InterruptPayload",
    "PlanContext",
    "PlanPayload",
    "PlanStep",
    "QuestionPayload",
    "ResultPayload",
    "Source",
    "TaskPayload",
    "UserInputPayload",
]

__version__ = "0.1.0"
