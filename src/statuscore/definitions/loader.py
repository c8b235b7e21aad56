"""
YAML loader for monitoring definitions.

Sources, merged in order (later wins):

1. the main file (e.g. ``config.yaml``);
2. every ``conf.d/*.yaml`` next to it, in sorted order;
3. environment variables ``STATUSCORE_<SECTION>__<KEY>``, where ``__``
   separates nesting levels (``STATUSCORE_STATUS_DASHBOARD__SECRET`` sets
   ``status_dashboard.secret``).

Mappings are merged recursively; lists and scalars are replaced.  The
merged document is validated against ``MonitorConfig`` and compiled into
``MonitorDefinitions``.

Usage::

    from statuscore.definitions.loader import ConfigLoader

    definitions = ConfigLoader().load(Path("config.yaml"))
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from statuscore.definitions.registry import MonitorDefinitions
from statuscore.definitions.schema import MonitorConfig
from statuscore.errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "STATUSCORE_"
ENV_SEPARATOR = "__"
CONF_D = "conf.d"


def deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def env_overrides(
    environ: Mapping[str, str],
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:
    """Nested overrides from ``<PREFIX><SECTION>__<KEY>`` variables.

    Only variables containing the ``__`` separator are considered, which
    keeps flat process settings (``STATUSCORE_LOG_LEVEL``) out of the
    document.  Values stay strings; model validation coerces them to the
    declared field types (``"3010"`` -> ``port=3010``).
    """
    overrides: dict[str, Any] = {}
    for name, raw in environ.items():
        if not name.startswith(prefix):
            continue
        path = name[len(prefix):].lower().split(ENV_SEPARATOR)
        if len(path) < 2 or not all(path):
            continue
        node = overrides
        for part in path[:-1]:
            node = node.setdefault(part, {})
        node[path[-1]] = raw
    return overrides


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return data


class ConfigLoader:
    """Loads, merges and compiles monitoring definitions."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    def load_raw(self, path: Path) -> dict[str, Any]:
        """Merged document (main file + conf.d + environment).

        Raises:
            FileNotFoundError: If the main file does not exist.
            ConfigurationError: If a file is not valid YAML.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        document = _read_yaml(path)
        for part in sorted((path.resolve().parent / CONF_D).glob("*.yaml")):
            logger.debug("Merging configuration part %s", part)
            document = deep_merge(document, _read_yaml(part))

        return deep_merge(document, env_overrides(self._environ))

    def load(self, path: Path) -> MonitorDefinitions:
        """Load and compile the definitions rooted at ``path``.

        Raises:
            FileNotFoundError: If the main file does not exist.
            ConfigurationError: On invalid YAML, schema or references.
        """
        return self.compile(self.load_raw(path), source=str(path))

    def load_from_string(self, yaml_str: str) -> MonitorDefinitions:
        """Compile definitions from a YAML string (no conf.d or env merging)."""
        try:
            raw = yaml.safe_load(yaml_str) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML: {exc}") from exc
        return self.compile(raw, source="<string>")

    @staticmethod
    def compile(raw: Mapping[str, Any], source: str = "<document>") -> MonitorDefinitions:
        try:
            config = MonitorConfig.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid monitoring definitions in {source}: {exc}") from exc
        return MonitorDefinitions(config)
