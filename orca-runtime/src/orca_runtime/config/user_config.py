"""
Loading of the per-project ``orca.json`` user config file.

The file is optional. When present it must match ``OrcaUserConfig`` exactly;
unknown keys are rejected so typos surface as errors instead of silently
falling back to defaults.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..types import AutonomyLevel
from .agents import AgentConfig

LOGGER = logging.getLogger(__name__)

USER_CONFIG_FILENAME = "orca.json"


class ConfigError(ValueError):
    """Raised when the user config file cannot be read or is invalid."""


class _UserConfigModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class UserValidationSettings(_UserConfigModel):
    max_retries: Optional[int] = Field(default=None, ge=0, alias="maxRetries")
    wrap_plain_text: Optional[bool] = Field(default=None, alias="wrapPlainText")


class UserSettings(_UserConfigModel):
    """The ``settings`` block of the user config."""

    autonomy: Optional[AutonomyLevel] = None
    max_retries: Optional[int] = Field(default=None, ge=0, alias="maxRetries")
    validation: Optional[UserValidationSettings] = None


class OrcaUserConfig(_UserConfigModel):
    """Top-level shape of ``orca.json``."""

    schema_ref: Optional[str] = Field(default=None, alias="$schema")
    agents: Optional[Dict[str, AgentConfig]] = None
    settings: Optional[UserSettings] = None


def user_config_path(directory: str | Path) -> Path:
    return Path(directory) / USER_CONFIG_FILENAME


def load_user_config(directory: str | Path) -> Optional[OrcaUserConfig]:
    """
    Load ``orca.json`` from ``directory``.

    Args:
        directory: Directory expected to contain the config file.

    Returns:
        The parsed config, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file cannot be read, is not JSON, or does not
            match the schema.
    """
    path = user_config_path(directory)
    if not path.exists():
        LOGGER.debug("No user config at %s", path)
        return None

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc}") from exc

    try:
        config = OrcaUserConfig.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '(root)'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigError(f"Invalid config in {path}: {problems}") from exc

    LOGGER.info("Loaded user config from %s", path)
    return config


__all__ = [
    "ConfigError",
    "OrcaUserConfig",
    "USER_CONFIG_FILENAME",
    "UserSettings",
    "UserValidationSettings",
    "load_user_config",
    "user_config_path",
]
