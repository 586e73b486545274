"""
Agent registry configuration.

The registry maps agent ids to ``AgentConfig`` entries. The orchestrator only
dispatches to agents present in the registry, and the action classifier may
consult an agent's declared ``risk`` tier. Built-in agents are defined in
``DEFAULT_AGENTS``; a project can override or extend them through its user
config file, combined with ``merge_agent_configs``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..types import DEFAULT_RESPONSE_TYPES, ActionClassification, ResponseType

PROTECTED_AGENTS = frozenset({"orca", "strategist"})


class AgentConfig(BaseModel):
    """
    Configuration for a single agent in the registry.

    Dispatch reads ``risk`` when classifying a task and ``disable`` when
    merging registries. Everything else, ``response_types`` included, is
    carried for the host runtime that builds each agent's instructions; the
    merge only guarantees that protected agents keep their built-in list.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    mode: Optional[Literal["primary", "subagent", "all"]] = None
    description: Optional[str] = None
    prompt: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    top_p: Optional[float] = Field(default=None, ge=0, le=1)
    max_steps: Optional[int] = Field(default=None, ge=1, alias="maxSteps")
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    tools: Optional[Dict[str, bool]] = None
    disable: Optional[bool] = None
    response_types: Optional[List[ResponseType]] = Field(
        default=None,
        alias="responseTypes",
        description="Envelope types the host tells this agent to answer with; not enforced by dispatch.",
    )
    risk: Optional[ActionClassification] = Field(
        default=None,
        description="Risk tier the classifier should assume for this agent.",
    )


DEFAULT_AGENTS: Dict[str, AgentConfig] = {
    "orca": AgentConfig(
        mode="primary",
        description="Orchestrator that plans work and dispatches it to specialists.",
        response_types=[],
    ),
    "strategist": AgentConfig(
        mode="subagent",
        description="Breaks goals into executable multi-step plans.",
        response_types=["plan", "question", "escalation", "answer", "failure"],
    ),
    "coder": AgentConfig(
        mode="subagent",
        description="Implements code changes.",
        response_types=list(DEFAULT_RESPONSE_TYPES),
    ),
    "tester": AgentConfig(
        mode="subagent",
        description="Writes and runs tests.",
        response_types=list(DEFAULT_RESPONSE_TYPES),
    ),
    "reviewer": AgentConfig(
        mode="subagent",
        description="Reviews code and reports findings.",
        response_types=list(DEFAULT_RESPONSE_TYPES),
    ),
    "researcher": AgentConfig(
        mode="subagent",
        description="Investigates codebases and documentation.",
        response_types=list(DEFAULT_RESPONSE_TYPES),
    ),
    "document-writer": AgentConfig(
        mode="subagent",
        description="Writes and updates documentation.",
        response_types=list(DEFAULT_RESPONSE_TYPES),
    ),
    "architect": AgentConfig(
        mode="subagent",
        description="Advises on system design trade-offs.",
        response_types=list(DEFAULT_RESPONSE_TYPES),
    ),
}


def _merge_agent_config(base: AgentConfig, override: AgentConfig) -> Dict[str, Any]:
    merged = base.model_dump(exclude_none=True)
    for key, value in override.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        current = merged.get(key)
        # Nested mappings (tools) merge key-by-key; everything else replaces.
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def merge_agent_configs(
    defaults: Mapping[str, AgentConfig],
    user_agents: Optional[Mapping[str, AgentConfig]] = None,
) -> Dict[str, AgentConfig]:
    """
    Merge default agents with user overrides and additions.

    - A user entry for an existing agent is merged over the default.
    - A user entry for a new agent is added as-is.
    - Any agent whose merged config sets ``disable`` is dropped.
    - Protected agents keep their default ``response_types``.

    Args:
        defaults: Built-in agent definitions.
        user_agents: Overrides and additions from the user config.

    Returns:
        A new registry; neither input is modified.
    """
    user_agents = user_agents or {}
    result: Dict[str, AgentConfig] = {}

    for agent_id, default_config in defaults.items():
        override = user_agents.get(agent_id)
        if override is None:
            result[agent_id] = default_config
            continue

        merged = _merge_agent_config(default_config, override)
        if merged.get("disable"):
            continue
        if agent_id in PROTECTED_AGENTS:
            merged["response_types"] = default_config.response_types
        result[agent_id] = AgentConfig.model_validate(merged)

    for agent_id, user_config in user_agents.items():
        if agent_id in defaults or user_config.disable:
            continue
        result[agent_id] = user_config

    return result


__all__ = [
    "AgentConfig",
    "DEFAULT_AGENTS",
    "PROTECTED_AGENTS",
    "merge_agent_configs",
]
