"""
Enumerations and small value objects shared by the Orca runtime layers.

Autonomy levels, action classifications and gate decisions are closed sets.
They are modelled as ``str`` enums so they compare equal to their wire values
and serialise without custom encoders.
"""
from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AutonomyLevel(str, Enum):
    """
    How much human confirmation is required before a task is dispatched.

    Attributes:
        SUPERVISED: Every dispatch needs approval; dangerous actions are blocked.
        ASSISTED: Routine work proceeds; significant work needs approval.
        AUTONOMOUS: Everything proceeds except dangerous work, which needs approval.
    """

    SUPERVISED = "supervised"
    ASSISTED = "assisted"
    AUTONOMOUS = "autonomous"


class ActionClassification(str, Enum):
    """Risk tier of a task, derived from its target agent and prompt."""

    ROUTINE = "routine"
    SIGNIFICANT = "significant"
    DANGEROUS = "dangerous"


class GateDecision(str, Enum):
    """Outcome of the pre-dispatch autonomy gate."""

    PROCEED = "proceed"
    REQUIRE_APPROVAL = "require_approval"
    BLOCK = "block"


ResponseType = Literal["answer", "plan", "question", "escalation", "failure"]

DEFAULT_RESPONSE_TYPES: tuple[ResponseType, ...] = (
    "answer",
    "plan",
    "question",
    "escalation",
    "failure",
)


class ValidationConfig(BaseModel):
    """
    Controls how worker output is validated.

    Attributes:
        max_retries: Number of correction prompts sent after the first
            validation failure. The initial validation is not counted.
        wrap_plain_text: Wrap non-JSON worker output in a ``result`` envelope
            instead of treating it as a validation failure.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=2, ge=0)
    wrap_plain_text: bool = False


DEFAULT_VALIDATION_CONFIG = ValidationConfig()


__all__ = [
    "ActionClassification",
    "AutonomyLevel",
    "DEFAULT_RESPONSE_TYPES",
    "DEFAULT_VALIDATION_CONFIG",
    "GateDecision",
    "ResponseType",
    "ValidationConfig",
]
