"""
Action classification and the autonomy gate policy.

Both functions here are pure: ``classify_action`` maps a task to a risk tier
using lexical patterns and agent membership, and ``determine_gate`` maps an
(autonomy level, risk tier) pair to a gate decision through a fixed table.
Neither performs I/O or keeps state, so the whole decision space can be tested
exhaustively.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping, Optional, Pattern, Tuple

from pydantic import BaseModel, ConfigDict, Field

from orca_contracts import TaskMessage

from .config.agents import AgentConfig
from .config.settings import OrcaSettings
from .config.user_config import UserSettings
from .types import ActionClassification, AutonomyLevel, GateDecision

DEFAULT_AUTONOMY_LEVEL = AutonomyLevel.SUPERVISED
DEFAULT_MAX_RETRIES = 2


class AutonomyConfig(BaseModel):
    """
    Autonomy settings applied to a dispatch.

    Attributes:
        level: Current autonomy level.
        max_retries: Retry budget for transient failures after dispatch.
    """

    model_config = ConfigDict(frozen=True)

    level: AutonomyLevel = DEFAULT_AUTONOMY_LEVEL
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)


DEFAULT_AUTONOMY_CONFIG = AutonomyConfig()


def _compile(*patterns: str) -> Tuple[Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


DANGEROUS_PATTERNS = _compile(
    r"\bdelete\b",
    r"\bdrop\b",
    r"\bremove\s+all\b",
    r"\btruncate\b",
    r"\bwipe\b",
    r"\bdestroy\b",
    r"\brm\s+-rf\b",
    r"\bforce\s+push\b",
    r"--force\b",  # no leading \b: a dash is not a word character
    r"\breset\s+--hard\b",
)

SIGNIFICANT_PATTERNS = _compile(
    r"\bmodify\b",
    r"\bupdate\b",
    r"\bchange\b",
    r"\bcreate\b",
    r"\bwrite\b",
    r"\bimplement\b",
    r"\brefactor\b",
    r"\bfix\b",
    r"\badd\b",
    r"\bmigrat",
    r"\bdeploy",
    r"\binstall\b",
)


@dataclass(frozen=True)
class ClassificationRules:
    """Agent sets and prompt patterns consulted by ``classify_action``."""

    routine_agents: frozenset[str] = frozenset({"researcher", "reviewer"})
    significant_agents: frozenset[str] = frozenset(
        {"coder", "tester", "document-writer", "strategist"}
    )
    dangerous_agents: frozenset[str] = frozenset()
    dangerous_patterns: Tuple[Pattern[str], ...] = field(default=DANGEROUS_PATTERNS)
    significant_patterns: Tuple[Pattern[str], ...] = field(default=SIGNIFICANT_PATTERNS)


DEFAULT_CLASSIFICATION_RULES = ClassificationRules()


def _declared_risk(
    agent_id: str, agents: Optional[Mapping[str, AgentConfig]]
) -> Optional[ActionClassification]:
    if not agents:
        return None
    config = agents.get(agent_id)
    return config.risk if config is not None else None


def classify_action(
    task: TaskMessage,
    agents: Optional[Mapping[str, AgentConfig]] = None,
    rules: ClassificationRules = DEFAULT_CLASSIFICATION_RULES,
) -> ActionClassification:
    """
    Classify a task by target agent and prompt content.

    First match wins:

    1. Dangerous pattern in the prompt -> dangerous
    2. Dangerous agent -> dangerous
    3. Significant agent -> significant
    4. Significant pattern in the prompt -> significant
    5. Routine agent -> routine
    6. Anything else -> routine

    An agent whose registry entry declares ``risk`` counts as a member of the
    matching agent set.

    Args:
        task: The task being dispatched.
        agents: Agent registry, consulted for declared risk tiers.
        rules: Agent sets and patterns to apply.

    Returns:
        The action classification.
    """
    agent_id = task.payload.agent_id
    prompt = task.payload.prompt
    declared = _declared_risk(agent_id, agents)

    if any(pattern.search(prompt) for pattern in rules.dangerous_patterns):
        return ActionClassification.DANGEROUS

    if agent_id in rules.dangerous_agents or declared is ActionClassification.DANGEROUS:
        return ActionClassification.DANGEROUS

    if agent_id in rules.significant_agents or declared is ActionClassification.SIGNIFICANT:
        return ActionClassification.SIGNIFICANT

    if any(pattern.search(prompt) for pattern in rules.significant_patterns):
        return ActionClassification.SIGNIFICANT

    if agent_id in rules.routine_agents or declared is ActionClassification.ROUTINE:
        return ActionClassification.ROUTINE

    return ActionClassification.ROUTINE


_GATE_TABLE: Mapping[Tuple[AutonomyLevel, ActionClassification], GateDecision] = {
    (AutonomyLevel.SUPERVISED, ActionClassification.ROUTINE): GateDecision.REQUIRE_APPROVAL,
    (AutonomyLevel.SUPERVISED, ActionClassification.SIGNIFICANT): GateDecision.REQUIRE_APPROVAL,
    (AutonomyLevel.SUPERVISED, ActionClassification.DANGEROUS): GateDecision.BLOCK,
    (AutonomyLevel.ASSISTED, ActionClassification.ROUTINE): GateDecision.PROCEED,
    (AutonomyLevel.ASSISTED, ActionClassification.SIGNIFICANT): GateDecision.REQUIRE_APPROVAL,
    (AutonomyLevel.ASSISTED, ActionClassification.DANGEROUS): GateDecision.BLOCK,
    (AutonomyLevel.AUTONOMOUS, ActionClassification.ROUTINE): GateDecision.PROCEED,
    (AutonomyLevel.AUTONOMOUS, ActionClassification.SIGNIFICANT): GateDecision.PROCEED,
    (AutonomyLevel.AUTONOMOUS, ActionClassification.DANGEROUS): GateDecision.REQUIRE_APPROVAL,
}


def determine_gate(
    level: AutonomyLevel | str,
    classification: ActionClassification | str,
) -> GateDecision:
    """
    Look up the gate decision for an autonomy level and classification.

    ======================  ================  ================  ================
    level                   routine           significant       dangerous
    ======================  ================  ================  ================
    supervised              require_approval  require_approval  block
    assisted                proceed           require_approval  block
    autonomous              proceed           proceed           require_approval
    ======================  ================  ================  ================

    Unrecognised levels or classifications always require approval.
    """
    try:
        key = (AutonomyLevel(level), ActionClassification(classification))
    except ValueError:
        return GateDecision.REQUIRE_APPROVAL
    return _GATE_TABLE[key]


def resolve_autonomy_level(
    user_settings: Optional[UserSettings] = None,
    settings: Optional[OrcaSettings] = None,
) -> AutonomyLevel:
    """Resolve the autonomy level: user config, then process settings, then default."""
    if user_settings is not None and user_settings.autonomy is not None:
        return user_settings.autonomy
    if settings is not None:
        return settings.autonomy
    return DEFAULT_AUTONOMY_LEVEL


def resolve_autonomy_config(
    user_settings: Optional[UserSettings] = None,
    settings: Optional[OrcaSettings] = None,
) -> AutonomyConfig:
    """Resolve the full autonomy config with the same precedence as the level."""
    max_retries = DEFAULT_MAX_RETRIES
    if user_settings is not None and user_settings.max_retries is not None:
        max_retries = user_settings.max_retries
    elif settings is not None:
        max_retries = settings.max_retries
    return AutonomyConfig(
        level=resolve_autonomy_level(user_settings, settings),
        max_retries=max_retries,
    )


__all__ = [
    "AutonomyConfig",
    "ClassificationRules",
    "DANGEROUS_PATTERNS",
    "DEFAULT_AUTONOMY_CONFIG",
    "DEFAULT_AUTONOMY_LEVEL",
    "DEFAULT_CLASSIFICATION_RULES",
    "SIGNIFICANT_PATTERNS",
    "classify_action",
    "determine_gate",
    "resolve_autonomy_config",
    "resolve_autonomy_level",
]
