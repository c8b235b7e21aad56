"""
Compiled monitoring definitions.

``MonitorDefinitions`` turns a validated ``MonitorConfig`` into the
runtime view used by the health evaluator and the reporter:

- flag metrics expanded per environment (``FlagRegistry``);
- health definitions with parsed expressions (``CompiledServiceHealth``);
- logical dashboard components per (environment, service).

Every cross reference is checked here, once, so that a bad document
fails at load time with the offending service or template named.
"""

from __future__ import annotations

import logging
from typing import Optional

from statuscore.dashboard.models import LogicalComponent
from statuscore.definitions.schema import EnvironmentDefinition, MonitorConfig
from statuscore.errors import ConfigurationError
from statuscore.health.engine import CompiledServiceHealth, compile_service_health
from statuscore.health.templates import FlagRegistry

logger = logging.getLogger(__name__)


class MonitorDefinitions:
    """Validated, compiled monitoring definitions."""

    def __init__(self, config: MonitorConfig):
        """
        Compile ``config``.

        Raises:
            ConfigurationError: On any invalid cross reference.
        """
        self.config = config
        self.environments = self._index_environments(config.environments)
        self.flags = FlagRegistry.build(
            config.metric_templates,
            config.flag_metrics,
            self.environments,
        )
        self.health: dict[str, CompiledServiceHealth] = {
            key: compile_service_health(key, definition)
            for key, definition in config.health_metrics.items()
        }
        logger.info(
            "Loaded monitoring definitions: environments=%d, flags=%d, services=%d",
            len(self.environments),
            len(self.flags),
            len(self.health),
        )

    @staticmethod
    def _index_environments(
        environments: list[EnvironmentDefinition],
    ) -> dict[str, EnvironmentDefinition]:
        index: dict[str, EnvironmentDefinition] = {}
        for env in environments:
            if env.name in index:
                raise ConfigurationError(f"Environment {env.name!r} is declared twice")
            index[env.name] = env
        return index

    def services(self) -> list[str]:
        """Health definition keys in declared order."""
        return list(self.health)

    def pairs(self) -> list[tuple[str, str]]:
        """Every (environment, service) pair in declared order."""
        return [(env, service) for env in self.environments for service in self.health]

    def logical_component(self, service: str, environment: str) -> Optional[LogicalComponent]:
        """Dashboard identity of ``service`` in ``environment``.

        ``None`` when the health definition has no ``component_name``.
        """
        health = self.health.get(service)
        env = self.environments.get(environment)
        if health is None or env is None or not health.component_name:
            return None
        return LogicalComponent.from_mapping(health.component_name, env.attributes)
