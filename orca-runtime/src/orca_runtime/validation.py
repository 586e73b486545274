"""
Validation of raw worker output against the Orca message protocol.

Workers are semi-trusted: they are asked to answer with a JSON message
envelope, but may return prose, broken JSON or envelopes with the wrong
shape. ``validate_message`` classifies a raw string without side effects, and
``validate_with_retry`` drives the bounded correction loop that asks the
worker to resend its output until it conforms or the budget is spent.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Optional, Union

from pydantic import ValidationError

from orca_contracts import (
    MESSAGE_ADAPTER,
    MESSAGE_TYPES,
    ErrorCode,
    FailureMessage,
    MessageEnvelope,
    ResultMessage,
    new_session_id,
    utc_timestamp,
)

from .config.settings import OrcaSettings
from .config.user_config import UserSettings
from .types import DEFAULT_VALIDATION_CONFIG, ValidationConfig

LOGGER = logging.getLogger(__name__)

VALIDATION_ERROR_HEADER = "Message validation failed"
INVALID_JSON_MESSAGE = "Response is not valid JSON"

CorrectionSender = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class ValidationSuccess:
    message: MessageEnvelope
    success: Literal[True] = True


@dataclass(frozen=True)
class ValidationFailure:
    """
    A rejected worker response.

    Attributes:
        error: Human-readable description, suitable for a correction prompt.
        retryable: Whether asking the worker again may help.
        invalid_json: True when the input could not be parsed as JSON at all.
    """

    error: str
    retryable: bool = True
    invalid_json: bool = False
    success: Literal[False] = False


ValidationOutcome = Union[ValidationSuccess, ValidationFailure]


def format_validation_errors(
    error: ValidationError, *, discriminator_tag: Optional[str] = None
) -> str:
    """
    Render a Pydantic validation error as one ``field: reason`` line per problem.

    Args:
        error: The validation error to render.
        discriminator_tag: Envelope type that selected the union member. Pydantic
            prefixes locations with it; it is stripped for readability.
    """
    lines = [f"{VALIDATION_ERROR_HEADER}:"]
    for detail in error.errors():
        location = list(detail["loc"])
        if discriminator_tag is not None and location and location[0] == discriminator_tag:
            location = location[1:]
        path = ".".join(str(part) for part in location) or "(root)"
        lines.append(f"  - {path}: {detail['msg']}")
    return "\n".join(lines)


def validate_message(raw: str) -> ValidationOutcome:
    """
    Validate raw worker output as a message envelope.

    Both JSON and schema failures are retryable: a corrected resend can fix
    either. JSON syntax errors, including input nested too deeply to parse,
    are reported with ``invalid_json`` set.
    """
    try:
        message = MESSAGE_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        details = exc.errors()
        syntax = next((detail for detail in details if detail["type"] == "json_invalid"), None)
        if syntax is not None:
            return ValidationFailure(
                error=f"{INVALID_JSON_MESSAGE}: {syntax['msg']}",
                invalid_json=True,
            )
        location = details[0]["loc"] if details else ()
        tag = location[0] if location and location[0] in MESSAGE_TYPES else None
        return ValidationFailure(error=format_validation_errors(exc, discriminator_tag=tag))

    return ValidationSuccess(message=message)


def wrap_as_result_message(text: str, agent_id: str) -> ResultMessage:
    """Wrap plain worker text in a ``result`` envelope with a fresh session id."""
    return ResultMessage(
        type="result",
        session_id=new_session_id(),
        timestamp=utc_timestamp(),
        payload={"agent_id": agent_id, "content": text},
    )


def create_failure_message(
    code: ErrorCode,
    message: str,
    cause: Optional[str] = None,
    *,
    agent_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> FailureMessage:
    """
    Build a ``failure`` envelope.

    ``cause`` and ``agent_id`` are omitted from the payload when not given. A
    fresh session id is generated unless one is supplied.
    """
    payload: dict[str, Any] = {"code": code, "message": message}
    if cause is not None:
        payload["cause"] = cause
    if agent_id is not None:
        payload["agent_id"] = agent_id
    return FailureMessage(
        type="failure",
        session_id=session_id or new_session_id(),
        timestamp=utc_timestamp(),
        payload=payload,
    )


def resolve_validation_config(
    user_settings: Optional[UserSettings] = None,
    settings: Optional[OrcaSettings] = None,
) -> ValidationConfig:
    """Resolve the correction budget and plain-text policy: user config, then settings, then defaults."""
    max_retries = DEFAULT_VALIDATION_CONFIG.max_retries
    wrap_plain_text = DEFAULT_VALIDATION_CONFIG.wrap_plain_text
    if settings is not None:
        max_retries = settings.validation_max_retries
        wrap_plain_text = settings.wrap_plain_text

    user_validation = user_settings.validation if user_settings is not None else None
    if user_validation is not None:
        if user_validation.max_retries is not None:
            max_retries = user_validation.max_retries
        if user_validation.wrap_plain_text is not None:
            wrap_plain_text = user_validation.wrap_plain_text

    return ValidationConfig(max_retries=max_retries, wrap_plain_text=wrap_plain_text)


def build_correction_prompt(error: str) -> str:
    """Compose the prompt that asks a worker to resend a conforming envelope."""
    return (
        "Your previous response could not be processed because it is not a valid "
        "message envelope.\n\n"
        f"{error}\n\n"
        "Resend your response as a single JSON object with the fields "
        '"type", "timestamp" and "payload", using one of the response types you '
        "were instructed to use. Do not include any text outside the JSON object."
    )


def _validation_failure(agent_id: str, error: str, attempts: int) -> FailureMessage:
    if attempts:
        summary = f"Agent {agent_id} returned an invalid message after {attempts} correction attempt(s)"
    else:
        summary = f"Agent {agent_id} returned an invalid message"
    return create_failure_message(
        ErrorCode.VALIDATION_ERROR,
        summary,
        error,
        agent_id=agent_id,
    )


async def validate_with_retry(
    raw: str,
    agent_id: str,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
    correction_sender: Optional[CorrectionSender] = None,
) -> MessageEnvelope:
    """
    Validate worker output, asking the worker for corrections when it fails.

    ``config.max_retries`` bounds the number of correction prompts; the
    initial validation is not counted against it. A valid first response never
    triggers the sender.

    Validation problems never raise: an exhausted budget produces a
    ``VALIDATION_ERROR`` failure envelope. Exceptions raised by
    ``correction_sender`` itself propagate to the caller.

    Args:
        raw: Raw text produced by the worker.
        agent_id: Agent that produced the text.
        config: Correction budget and plain-text policy.
        correction_sender: Sends a correction prompt to the same worker and
            returns its new raw output.

    Returns:
        The validated envelope, a wrapped ``result`` envelope, or a failure.
    """
    outcome = validate_message(raw)
    if isinstance(outcome, ValidationSuccess):
        return outcome.message

    if config.wrap_plain_text and outcome.invalid_json:
        LOGGER.debug("Wrapping plain-text response from %s", agent_id)
        return wrap_as_result_message(raw, agent_id)

    if correction_sender is None or config.max_retries <= 0:
        return _validation_failure(agent_id, outcome.error, attempts=0)

    attempts = 0
    while attempts < config.max_retries:
        attempts += 1
        LOGGER.info(
            "Requesting corrected response from %s (attempt %d/%d)",
            agent_id,
            attempts,
            config.max_retries,
        )
        raw = await correction_sender(build_correction_prompt(outcome.error))
        outcome = validate_message(raw)
        if isinstance(outcome, ValidationSuccess):
            return outcome.message

    LOGGER.warning(
        "Agent %s did not produce a valid message after %d correction attempt(s)",
        agent_id,
        attempts,
    )
    return _validation_failure(agent_id, outcome.error, attempts=attempts)


__all__ = [
    "CorrectionSender",
    "INVALID_JSON_MESSAGE",
    "VALIDATION_ERROR_HEADER",
    "ValidationFailure",
    "ValidationOutcome",
    "ValidationSuccess",
    "build_correction_prompt",
    "create_failure_message",
    "format_validation_errors",
    "resolve_validation_config",
    "validate_message",
    "validate_with_retry",
    "wrap_as_result_message",
]
