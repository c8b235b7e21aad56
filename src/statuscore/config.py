"""
Process configuration for StatusCore.

Uses Pydantic BaseSettings for environment variable integration and
validation.  These are the settings of the running process (where the
monitoring definitions live, how to log); the monitoring definitions
themselves are YAML documents handled by ``statuscore.definitions``.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (STATUSCORE_*)
3. .env file
4. Default values

Example:
    from statuscore.config import get_config

    config = get_config()
    print(config.config_file)  # From STATUSCORE_CONFIG_FILE or default

    # Override at runtime
    config = get_config(log_format="text")
"""

from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StatusCoreConfig(BaseSettings):
    """
    Central process configuration for StatusCore.

    All settings can be overridden via environment variables
    prefixed with STATUSCORE_.

    Example:
        export STATUSCORE_CONFIG_FILE=/etc/statuscore/config.yaml
        export STATUSCORE_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="STATUSCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service identification
    service_name: str = Field(
        default="statuscore",
        description="Service name for log and telemetry attribution",
    )

    # Monitoring definitions
    config_file: str = Field(
        default="config.yaml",
        description="Path to the main monitoring definitions YAML file",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for StatusCore",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format (json for Loki, text for console)",
    )

    @field_validator("config_file")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand ~ and environment variables in paths."""
        return os.path.expanduser(os.path.expandvars(v))


# Global singleton
_config: Optional[StatusCoreConfig] = None


def get_config(**overrides) -> StatusCoreConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        StatusCoreConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = StatusCoreConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
