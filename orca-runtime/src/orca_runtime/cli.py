"""
Command-line interface for dispatching a single task envelope.

Reads a task envelope from a file (or stdin), builds the agent registry from
the built-in defaults merged with the project's ``orca.json``, dispatches the
task to the worker host and prints the response envelope.

Exit codes: 0 for any non-failure response, 1 for a ``failure`` response,
2 when the configuration cannot be loaded.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from orca_contracts import TaskMessage, dump_message, new_session_id, utc_timestamp

from .autonomy import AutonomyConfig, resolve_autonomy_config
from .config import ConfigError, DEFAULT_AGENTS, OrcaSettings, get_settings, load_user_config, merge_agent_configs
from .dispatch import DispatchContext, WorkerClient, dispatch_to_agent
from .logging_utils import configure_logging
from .mock import ScriptedWorkerClient, is_mock_mode_enabled
from .types import AutonomyLevel, ValidationConfig
from .validation import resolve_validation_config
from .worker_client import HttpWorkerClient

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE_RESPONSE = 1
EXIT_CONFIG_ERROR = 2


def build_task_envelope(agent_id: str, prompt: str) -> str:
    """Build a serialised task envelope with a fresh session id."""
    task = TaskMessage(
        type="task",
        session_id=new_session_id(),
        timestamp=utc_timestamp(),
        payload={"agent_id": agent_id, "prompt": prompt},
    )
    return dump_message(task)


def read_task(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def build_context(args: argparse.Namespace, settings: OrcaSettings, client: WorkerClient) -> DispatchContext:
    """
    Assemble the dispatch context from settings, user config and flags.

    Flags override the user config, which overrides process settings.

    Raises:
        ConfigError: If ``orca.json`` exists but is invalid.
    """
    user_config = load_user_config(args.config_dir or settings.config_dir)
    user_settings = user_config.settings if user_config else None
    user_agents = user_config.agents if user_config else None

    autonomy = resolve_autonomy_config(user_settings, settings)
    if args.autonomy is not None or args.max_retries is not None:
        autonomy = AutonomyConfig(
            level=args.autonomy if args.autonomy is not None else autonomy.level,
            max_retries=args.max_retries if args.max_retries is not None else autonomy.max_retries,
        )

    validation = resolve_validation_config(user_settings, settings)
    if args.wrap_plain_text:
        validation = ValidationConfig(max_retries=validation.max_retries, wrap_plain_text=True)

    return DispatchContext(
        client=client,
        agents=merge_agent_configs(DEFAULT_AGENTS, user_agents),
        validation_config=validation,
        autonomy_config=autonomy,
    )


async def run_dispatch(args: argparse.Namespace, settings: OrcaSettings) -> str:
    raw_task = read_task(args.task)

    if args.mock_response or is_mock_mode_enabled():
        LOGGER.info("Mock mode: answering prompts from %d scripted response(s)", len(args.mock_response or []))
        client = ScriptedWorkerClient(args.mock_response or [])
        ctx = build_context(args, settings, client)
        return await dispatch_to_agent(raw_task, ctx)

    async with HttpWorkerClient(
        args.worker_url or settings.worker_url,
        timeout=settings.worker_timeout,
    ) as http_client:
        ctx = build_context(args, settings, http_client)
        return await dispatch_to_agent(raw_task, ctx)


def cmd_dispatch(args: argparse.Namespace) -> int:
    """Dispatch a task envelope and print the response envelope."""
    if args.print_task:
        agent_id, prompt = args.print_task
        print(build_task_envelope(agent_id, prompt))
        return EXIT_OK

    try:
        settings = get_settings()
        response = asyncio.run(run_dispatch(args, settings))
    except (ConfigError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except OSError as exc:
        print(f"Error: cannot read task: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print(response)
    if json.loads(response).get("type") == "failure":
        return EXIT_FAILURE_RESPONSE
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orca",
        description="Dispatch tasks from the Orca orchestrator to specialist agents",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    parser_dispatch = subparsers.add_parser("dispatch", help="Dispatch a task envelope")
    parser_dispatch.add_argument(
        "task", nargs="?", default="-",
        help="Path to a task envelope JSON file, or - for stdin (default)",
    )
    parser_dispatch.add_argument(
        "--autonomy", choices=[level.value for level in AutonomyLevel],
        help="Override the autonomy level",
    )
    parser_dispatch.add_argument(
        "--max-retries", type=int, dest="max_retries",
        help="Override the retry budget for transient failures",
    )
    parser_dispatch.add_argument(
        "--wrap-plain-text", action="store_true", dest="wrap_plain_text",
        help="Wrap plain-text agent output in a result envelope",
    )
    parser_dispatch.add_argument("--worker-url", dest="worker_url", help="Worker host base URL")
    parser_dispatch.add_argument("--config-dir", dest="config_dir", help="Directory containing orca.json")
    parser_dispatch.add_argument(
        "--mock-response", action="append", dest="mock_response", metavar="TEXT",
        help="Answer prompts from this scripted text instead of a worker host (repeatable)",
    )
    parser_dispatch.add_argument(
        "--print-task", nargs=2, metavar=("AGENT", "PROMPT"), dest="print_task",
        help="Print a new task envelope and exit",
    )
    parser_dispatch.set_defaults(func=cmd_dispatch)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_CONFIG_ERROR

    configure_logging(stream=sys.stderr)
    if args.max_retries is not None and args.max_retries < 0:
        parser.error("--max-retries must be non-negative")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
