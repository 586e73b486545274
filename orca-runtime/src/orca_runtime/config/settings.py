"""
Process-level settings for the Orca runtime.

``OrcaSettings`` is populated from ``ORCA_*`` environment variables and an
optional ``.env`` file. These values sit underneath the per-project user
config file (see ``orca_runtime.config.user_config``): anything the user
config specifies wins, anything it leaves out falls back to these settings.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..types import AutonomyLevel


class OrcaSettings(BaseSettings):
    """
    Configuration model for the dispatch runtime.

    Attributes:
        autonomy: Default autonomy level for dispatches.
        max_retries: Retry budget for transient dispatch failures.
        validation_max_retries: Correction prompts allowed per malformed response.
        wrap_plain_text: Wrap plain-text worker output instead of failing.
        worker_url: Base URL of the worker host's HTTP API.
        worker_timeout: Seconds to wait on a single worker HTTP call.
        config_dir: Directory containing the ``orca.json`` user config.
    """

    model_config = SettingsConfigDict(
        env_prefix="ORCA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    autonomy: AutonomyLevel = AutonomyLevel.SUPERVISED
    max_retries: int = Field(default=2, ge=0)
    validation_max_retries: int = Field(default=2, ge=0)
    wrap_plain_text: bool = False

    worker_url: str = "http://127.0.0.1:4096"
    worker_timeout: float = Field(default=300.0, gt=0)

    config_dir: str = ".opencode"


@lru_cache(maxsize=1)
def get_settings() -> OrcaSettings:
    """Return the cached process settings."""
    return OrcaSettings()


__all__ = ["OrcaSettings", "get_settings"]
