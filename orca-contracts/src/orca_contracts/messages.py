"""
Envelope models and the discriminated ``MessageEnvelope`` union.

Two envelope shapes exist. Request envelopes (``task``, ``user_input``,
``interrupt``) always carry the orchestrator's ``session_id``. Response
envelopes (``answer``, ``plan``, ``question``, ``escalation``, ``failure``,
``checkpoint``, ``result``) are produced by workers without a session id;
envelopes synthesised by the orchestrator itself may attach one. The ``type``
field selects exactly one payload model, and every level rejects unknown keys.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import Field, TypeAdapter

from .common import SessionId, Timestamp
from .payloads import (
    AnswerPayload,
    CheckpointPayload,
    EscalationPayload,
    FailurePayload,
    InterruptPayload,
    PlanPayload,
    QuestionPayload,
    ResultPayload,
    StrictModel,
    TaskPayload,
    UserInputPayload,
)

ORCHESTRATOR_AGENT_ID = "orca"


class RequestEnvelope(StrictModel):
    session_id: SessionId
    timestamp: Timestamp


class ResponseEnvelope(StrictModel):
    timestamp: Timestamp
    session_id: Optional[SessionId] = None


class TaskMessage(RequestEnvelope):
    type: Literal["task"]
    payload: TaskPayload


class UserInputMessage(RequestEnvelope):
    type: Literal["user_input"]
    payload: UserInputPayload


class InterruptMessage(RequestEnvelope):
    type: Literal["interrupt"]
    payload: InterruptPayload


class AnswerMessage(ResponseEnvelope):
    type: Literal["answer"]
    payload: AnswerPayload


class PlanMessage(ResponseEnvelope):
    type: Literal["plan"]
    payload: PlanPayload


class QuestionMessage(ResponseEnvelope):
    type: Literal["question"]
    payload: QuestionPayload


class EscalationMessage(ResponseEnvelope):
    type: Literal["escalation"]
    payload: EscalationPayload


class FailureMessage(ResponseEnvelope):
    type: Literal["failure"]
    payload: FailurePayload


class CheckpointMessage(ResponseEnvelope):
    type: Literal["checkpoint"]
    payload: CheckpointPayload


class ResultMessage(ResponseEnvelope):
    type: Literal["result"]
    payload: ResultPayload


MessageEnvelope = Annotated[
    Union[
        TaskMessage,
        UserInputMessage,
        InterruptMessage,
        AnswerMessage,
        PlanMessage,
        QuestionMessage,
        EscalationMessage,
        FailureMessage,
        CheckpointMessage,
        ResultMessage,
    ],
    Field(discriminator="type"),
]

MESSAGE_ADAPTER: TypeAdapter[Any] = TypeAdapter(MessageEnvelope)

REQUEST_TYPES = ("task", "user_input", "interrupt")
RESPONSE_TYPES = (
    "answer",
    "plan",
    "question",
    "escalation",
    "failure",
    "checkpoint",
    "result",
)
MESSAGE_TYPES = REQUEST_TYPES + RESPONSE_TYPES


def parse_message(raw: str | bytes | Mapping[str, Any]) -> MessageEnvelope:
    """
    Parse raw JSON text or an already-decoded mapping into an envelope.

    Raises:
        pydantic.ValidationError: If the input is not valid JSON or does not
            match any envelope variant.
    """
    if isinstance(raw, (str, bytes)):
        return MESSAGE_ADAPTER.validate_json(raw)
    return MESSAGE_ADAPTER.validate_python(raw)


def dump_message(message: StrictModel) -> str:
    """Serialise an envelope to compact JSON, omitting absent optional fields."""
    return message.model_dump_json(exclude_none=True)


__all__ = [
    "AnswerMessage",
    "CheckpointMessage",
    "EscalationMessage",
    "FailureMessage",
    "InterruptMessage",
    "MESSAGE_ADAPTER",
    "MESSAGE_TYPES",
    "MessageEnvelope",
    "ORCHESTRATOR_AGENT_ID",
    "PlanMessage",
    "QuestionMessage",
    "REQUEST_TYPES",
    "RESPONSE_TYPES",
    "RequestEnvelope",
    "ResponseEnvelope",
    "ResultMessage",
    "TaskMessage",
    "UserInputMessage",
    "dump_message",
    "parse_message",
]
