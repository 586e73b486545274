"""Tests for the dispatch orchestrator."""
from __future__ import annotations

import asyncio
import json
import logging
import threading

import httpx
import pytest

from orca_contracts import (
    AnswerMessage,
    ErrorCode,
    EscalationMessage,
    FailureMessage,
    ResultMessage,
    new_session_id,
    parse_message,
)
from orca_runtime.autonomy import AutonomyConfig
from orca_runtime.config import DEFAULT_AGENTS, AgentConfig, merge_agent_configs
from orca_runtime.dispatch import DispatchContext, dispatch_to_agent, extract_text, parse_task_message
from orca_runtime.mock import MOCK_SESSION_ID, ScriptedWorkerClient
from orca_runtime.types import AutonomyLevel, ValidationConfig
from orca_runtime.validation import VALIDATION_ERROR_HEADER

AUTONOMOUS = AutonomyConfig(level=AutonomyLevel.AUTONOMOUS, max_retries=0)


def _dispatch(message, client, **overrides):
    ctx = DispatchContext(client=client, agents=DEFAULT_AGENTS, **overrides)
    if not isinstance(message, str):
        message = json.dumps(message)
    return parse_message(asyncio.run(dispatch_to_agent(message, ctx)))


class TestTaskRejection:
    """Malformed or misaddressed tasks never reach a worker."""

    def test_non_json_task(self):
        client = ScriptedWorkerClient()
        response = _dispatch("definitely not json", client)

        assert isinstance(response, FailureMessage)
        assert response.payload.code is ErrorCode.VALIDATION_ERROR
        assert response.payload.message == "Invalid task message format"
        assert response.payload.cause == "Message is not valid JSON"
        assert client.sessions_created == 0

    def test_task_missing_prompt(self, make_task):
        task = make_task()
        del task["payload"]["prompt"]
        response = _dispatch(task, ScriptedWorkerClient())

        assert response.payload.code is ErrorCode.VALIDATION_ERROR
        assert response.payload.cause.startswith(VALIDATION_ERROR_HEADER)
        assert "payload.prompt" in response.payload.cause

    def test_non_task_envelope_rejected(self, answer_json):
        response = _dispatch(answer_json(), ScriptedWorkerClient())
        assert response.payload.code is ErrorCode.VALIDATION_ERROR

    def test_unknown_agent_lists_registry(self, make_task):
        client = ScriptedWorkerClient()
        response = _dispatch(make_task("historian"), client, autonomy_config=AUTONOMOUS)

        assert response.payload.code is ErrorCode.UNKNOWN_AGENT
        assert response.payload.message == "Unknown agent: historian"
        assert response.payload.cause == "Available agents: " + ", ".join(DEFAULT_AGENTS)
        assert client.prompts == []


class TestGating:
    """Gate decisions are enforced before any worker call."""

    def test_supervised_requires_approval(self, make_task):
        client = ScriptedWorkerClient(["unused"])
        task = make_task("researcher", "Find the retry docs")
        response = _dispatch(task, client)

        assert isinstance(response, EscalationMessage)
        assert response.session_id == task["session_id"]
        assert response.payload.decision_id == f"approval-{task['session_id']}"
        assert client.sessions_created == 0
        assert client.prompts == []

    def test_supervised_blocks_dangerous(self, make_task):
        client = ScriptedWorkerClient(["unused"])
        response = _dispatch(make_task("coder", "Delete all the old files"), client)

        assert isinstance(response, FailureMessage)
        assert response.payload.code is ErrorCode.AUTONOMY_BLOCKED
        assert client.prompts == []

    def test_autonomous_significant_proceeds(self, make_task, answer_json):
        client = ScriptedWorkerClient([answer_json()])
        response = _dispatch(make_task("coder", "Implement the parser"), client, autonomy_config=AUTONOMOUS)

        assert isinstance(response, AnswerMessage)
        assert len(client.prompts) == 1
        assert client.prompts[0].agent_id == "coder"
        assert client.prompts[0].text == "Implement the parser"
        assert client.prompts[0].session_id == MOCK_SESSION_ID

    def test_assisted_routine_proceeds(self, make_task, answer_json):
        client = ScriptedWorkerClient([answer_json("researcher")])
        config = AutonomyConfig(level=AutonomyLevel.ASSISTED)
        response = _dispatch(make_task("researcher", "Find the retry docs"), client, autonomy_config=config)
        assert isinstance(response, AnswerMessage)

    def test_autonomous_dangerous_escalates(self, make_task):
        client = ScriptedWorkerClient(["unused"])
        response = _dispatch(make_task("coder", "git push --force"), client, autonomy_config=AUTONOMOUS)
        assert isinstance(response, EscalationMessage)
        assert client.prompts == []


class TestExecution:
    """Session handling and response validation."""

    def test_session_creation_failure(self, make_task):
        client = ScriptedWorkerClient(["unused"], session_id=None)
        config = AutonomyConfig(level=AutonomyLevel.AUTONOMOUS, max_retries=3)
        response = _dispatch(make_task(), client, autonomy_config=config)

        assert response.payload.code is ErrorCode.SESSION_NOT_FOUND
        assert response.payload.message == "Failed to create session"
        assert client.sessions_created == 1
        assert client.prompts == []

    def test_parent_session_reused(self, make_task, answer_json):
        parent = new_session_id()
        client = ScriptedWorkerClient([answer_json()])
        _dispatch(make_task(parent_session_id=parent), client, autonomy_config=AUTONOMOUS)

        assert client.sessions_created == 0
        assert client.prompts[0].session_id == parent

    def test_empty_response(self, make_task):
        client = ScriptedWorkerClient([""])
        response = _dispatch(make_task(), client, autonomy_config=AUTONOMOUS)

        assert response.payload.code is ErrorCode.AGENT_ERROR
        assert response.payload.message == "Agent returned empty response"
        assert response.payload.agent_id == "coder"

    def test_plain_text_wrapped(self, make_task):
        client = ScriptedWorkerClient(["Refactored the parser."])
        response = _dispatch(
            make_task(),
            client,
            autonomy_config=AUTONOMOUS,
            validation_config=ValidationConfig(wrap_plain_text=True),
        )

        assert isinstance(response, ResultMessage)
        assert response.payload.content == "Refactored the parser."

    def test_plain_text_rejected_by_default(self, make_task):
        client = ScriptedWorkerClient(["Refactored the parser."])
        response = _dispatch(make_task(), client, autonomy_config=AUTONOMOUS)

        assert response.payload.code is ErrorCode.VALIDATION_ERROR
        assert len(client.prompts) == 3

    def test_deeply_nested_reply_is_validation_error(self, make_task):
        client = ScriptedWorkerClient(["[" * 100000])
        response = _dispatch(make_task(), client, autonomy_config=AUTONOMOUS)

        assert response.payload.code is ErrorCode.VALIDATION_ERROR
        assert len(client.prompts) == 3

    def test_correction_sent_on_same_session(self, make_task, answer_json):
        parent = new_session_id()
        client = ScriptedWorkerClient(["not json", answer_json()])
        response = _dispatch(make_task(parent_session_id=parent), client, autonomy_config=AUTONOMOUS)

        assert isinstance(response, AnswerMessage)
        assert [prompt.session_id for prompt in client.prompts] == [parent, parent]
        assert "not a valid message envelope" in client.prompts[1].text


class TestFailureHandling:
    """Exceptions become failure envelopes; retryable failures are retried."""

    def test_exception_becomes_agent_error(self, make_task):
        client = ScriptedWorkerClient([httpx.ConnectError("connection refused")])
        response = _dispatch(make_task(), client, autonomy_config=AUTONOMOUS)

        assert response.payload.code is ErrorCode.AGENT_ERROR
        assert response.payload.message == "Agent execution failed"
        assert response.payload.cause == "connection refused"

    def test_abort_becomes_timeout(self, make_task):
        abort = threading.Event()
        abort.set()
        client = ScriptedWorkerClient([RuntimeError("stream closed")])
        response = _dispatch(make_task(), client, autonomy_config=AUTONOMOUS, abort=abort)

        assert response.payload.code is ErrorCode.TIMEOUT
        assert response.payload.message == "Request timed out or was cancelled"

    def test_retryable_failure_retried(self, make_task, answer_json):
        client = ScriptedWorkerClient(["", answer_json()])
        config = AutonomyConfig(level=AutonomyLevel.ASSISTED, max_retries=2)
        response = _dispatch(make_task("researcher", "Find the docs"), client, autonomy_config=config)

        assert isinstance(response, AnswerMessage)
        assert client.sessions_created == 2

    def test_zero_retry_budget_returns_failure(self, make_task):
        client = ScriptedWorkerClient([""])
        config = AutonomyConfig(level=AutonomyLevel.ASSISTED, max_retries=0)
        response = _dispatch(make_task("researcher", "Find the docs"), client, autonomy_config=config)

        assert response.payload.code is ErrorCode.AGENT_ERROR
        assert client.sessions_created == 1

    def test_cancellation_propagates(self, make_task):
        client = ScriptedWorkerClient([asyncio.CancelledError()])
        with pytest.raises(asyncio.CancelledError):
            _dispatch(make_task(), client, autonomy_config=AUTONOMOUS)


def test_injected_logger_receives_records(make_task, caplog):
    logger = logging.getLogger("orca.tests.dispatch")
    with caplog.at_level(logging.INFO, logger="orca.tests.dispatch"):
        _dispatch(make_task("historian"), ScriptedWorkerClient(), logger=logger)

    assert any("Unknown agent" in record.getMessage() for record in caplog.records)


def test_response_types_not_enforced_on_replies(make_task, answer_json):
    """The registry's response types instruct the worker; replies are checked against the protocol only."""
    agents = merge_agent_configs(DEFAULT_AGENTS, {"coder": AgentConfig(response_types=["failure"])})
    ctx = DispatchContext(client=ScriptedWorkerClient([answer_json()]), agents=agents, autonomy_config=AUTONOMOUS)

    response = parse_message(asyncio.run(dispatch_to_agent(json.dumps(make_task()), ctx)))

    assert isinstance(response, AnswerMessage)


def test_extract_text_joins_text_parts():
    parts = [
        {"type": "text", "text": "first"},
        {"type": "tool", "name": "grep"},
        {"type": "text", "text": "second"},
    ]
    assert extract_text(parts) == "first\nsecond"


def test_parse_task_message_accepts_mapping(make_task):
    task = parse_task_message(make_task())
    assert task.payload.agent_id == "coder"
