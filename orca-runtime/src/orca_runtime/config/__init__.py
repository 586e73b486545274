"""
This package defines the configuration surface of the Orca runtime.

Three layers feed a dispatch: process settings read from the environment
(``OrcaSettings``), the optional per-project ``orca.json`` file
(``OrcaUserConfig``), and the agent registry built from ``DEFAULT_AGENTS``
merged with any user-supplied agents. All layers are Pydantic models, so a
misconfiguration is reported with a precise location instead of surfacing
later as odd dispatch behaviour.
"""
from .agents import DEFAULT_AGENTS, PROTECTED_AGENTS, AgentConfig, merge_agent_configs
from .settings import OrcaSettings, get_settings
from .user_config import (
    ConfigError,
    OrcaUserConfig,
    UserSettings,
    UserValidationSettings,
    load_user_config,
)

__all__ = [
    "AgentConfig",
    "ConfigError",
    "DEFAULT_AGENTS",
    "OrcaSettings",
    "OrcaUserConfig",
    "PROTECTED_AGENTS",
    "UserSettings",
    "UserValidationSettings",
    "get_settings",
    "load_user_config",
    "merge_agent_configs",
]
