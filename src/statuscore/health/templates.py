"""
Metric template expansion.

A ``FlagMetricDefinition`` names a template and lists the environments it
applies to.  Expansion produces one ``ResolvedFlagMetric`` per
(flag, environment): the template query with ``$service`` and
``$environment`` substituted literally, the template operator, and the
per-environment threshold override or the template default.

The expanded set is held in a ``FlagRegistry`` keyed by the fully
qualified flag name ``<service>.<metric name>``.

Usage::

    registry = FlagRegistry.build(templates, flag_metrics, environment_names)
    metric = registry.get("compute.api-slow", "production")
    metric.query  # 'stats.production.compute.latency'
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Optional

from pydantic import BaseModel, ConfigDict

from statuscore.definitions.schema import FlagMetricDefinition, MetricTemplate
from statuscore.errors import ConfigurationError
from statuscore.health.flags import Comparison, evaluate_flag

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\$(service|environment)")


def expand_query(query: str, service: str, environment: str) -> str:
    """Substitute the reserved ``$service``/``$environment`` tokens in one pass."""
    values = {"service": service, "environment": environment}
    return _TOKEN_RE.sub(lambda m: values[m.group(1)], query)


def resolve_threshold(template: MetricTemplate, override: Optional[float]) -> float:
    """Per-environment override if present, else the template default."""
    return template.threshold if override is None else override


class ResolvedFlagMetric(BaseModel):
    """A flag metric bound to one environment."""

    model_config = ConfigDict(frozen=True)

    name: str
    service: str
    environment: str
    query: str
    op: Comparison
    threshold: float

    def evaluate(self, sample: Optional[float]) -> bool:
        return evaluate_flag(sample, self.op, self.threshold)


class FlagRegistry:
    """Expanded flag metrics: flag name -> environment -> resolved metric."""

    def __init__(self, metrics: Mapping[str, Mapping[str, ResolvedFlagMetric]]):
        self._metrics = {name: dict(envs) for name, envs in metrics.items()}

    @classmethod
    def build(
        cls,
        templates: Mapping[str, MetricTemplate],
        flag_metrics: Iterable[FlagMetricDefinition],
        environments: Iterable[str],
    ) -> "FlagRegistry":
        """Expand every flag metric definition.

        Raises:
            ConfigurationError: On a reference to an undeclared template or
                environment.
        """
        declared_envs = set(environments)
        metrics: dict[str, dict[str, ResolvedFlagMetric]] = {}

        for definition in flag_metrics:
            flag_name = definition.qualified_name
            template = templates.get(definition.template.name)
            if template is None:
                raise ConfigurationError(
                    f"Flag metric {flag_name!r} of service {definition.service!r} "
                    f"references undeclared template {definition.template.name!r}"
                )

            per_env = metrics.setdefault(flag_name, {})
            for env in definition.environments:
                if env.name not in declared_envs:
                    raise ConfigurationError(
                        f"Flag metric {flag_name!r} of service {definition.service!r} "
                        f"references undeclared environment {env.name!r}"
                    )
                per_env[env.name] = ResolvedFlagMetric(
                    name=flag_name,
                    service=definition.service,
                    environment=env.name,
                    query=expand_query(template.query, definition.service, env.name),
                    op=template.op,
                    threshold=resolve_threshold(template, env.threshold),
                )

        logger.debug("Expanded %d flag metrics", len(metrics))
        return cls(metrics)

    def __contains__(self, flag_name: object) -> bool:
        return flag_name in self._metrics

    def __len__(self) -> int:
        return len(self._metrics)

    def names(self) -> list[str]:
        return list(self._metrics)

    def get(self, flag_name: str, environment: str) -> Optional[ResolvedFlagMetric]:
        return self._metrics.get(flag_name, {}).get(environment)

    def for_environment(self, environment: str) -> dict[str, ResolvedFlagMetric]:
        """All flag metrics configured for ``environment``."""
        return {
            name: envs[environment]
            for name, envs in self._metrics.items()
            if environment in envs
        }

    def services(self) -> set[str]:
        return {
            metric.service
            for envs in self._metrics.values()
            for metric in envs.values()
        }
