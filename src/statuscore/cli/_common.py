"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from statuscore.config import get_config
from statuscore.definitions.loader import ConfigLoader
from statuscore.definitions.registry import MonitorDefinitions
from statuscore.errors import ConfigurationError
from statuscore.logger import configure_logging

config_option = click.option(
    "--config", "-c", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Monitoring definitions YAML (default: $STATUSCORE_CONFIG_FILE or config.yaml)",
)


def setup_logging() -> None:
    settings = get_config()
    configure_logging(settings.log_level, settings.log_format)


def load_definitions(config_path: Optional[str]) -> MonitorDefinitions:
    """Load definitions or exit with status 1 and a readable message."""
    path = Path(config_path or get_config().config_file)
    try:
        return ConfigLoader().load(path)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    except ConfigurationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc
