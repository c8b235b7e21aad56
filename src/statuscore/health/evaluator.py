"""
Service health over a time range.

``HealthEvaluator`` runs the flag queries of one service in one
environment against the TSDB and evaluates the service's weighted
expressions at every timestamp that carries at least one sample:

1. a series value is turned into a flag with the metric's operator and
   threshold; a flag without a sample at that timestamp is ``false``;
2. the flag map is fed to ``compute_severity``;
3. the triggered flags and the matching expression are recorded on the
   point, so callers can explain a severity without re-querying the TSDB.

Declared flags that have no flag metric at all are left out of the map.
An expression referencing one of them makes the pair indeterminate.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Optional

from pydantic import BaseModel, Field

from statuscore.definitions.registry import MonitorDefinitions
from statuscore.errors import (
    EnvironmentNotSupportedError,
    HealthIndeterminateError,
    ServiceNotSupportedError,
    UnknownFlagError,
)
from statuscore.health.flags import Comparison
from statuscore.health.templates import ResolvedFlagMetric
from statuscore.telemetry import emit_health_evaluated
from statuscore.timeouts import DEFAULT_MAX_DATA_POINTS
from statuscore.tsdb.base import MetricSource, TimeRange

logger = logging.getLogger(__name__)


class TriggeredFlag(BaseModel):
    """A flag that was true at an evaluated timestamp."""

    name: str
    query: str
    op: Comparison
    threshold: float


class HealthPoint(BaseModel):
    """Severity of a service at one timestamp."""

    timestamp: int
    severity: int
    triggered_flags: list[TriggeredFlag] = Field(default_factory=list)
    matched_expression: Optional[str] = None

    @property
    def flag_names(self) -> list[str]:
        return [flag.name for flag in self.triggered_flags]


class ServiceHealth(BaseModel):
    """Health of one service in one environment over a time range."""

    name: str
    service_category: str
    environment: str
    metrics: list[HealthPoint] = Field(default_factory=list)

    @property
    def latest(self) -> Optional[HealthPoint]:
        return self.metrics[-1] if self.metrics else None


class HealthEvaluator:
    """Evaluates service health from TSDB samples."""

    def __init__(self, definitions: MonitorDefinitions, source: MetricSource):
        self.definitions = definitions
        self.source = source

    def flag_metrics(self, service: str, environment: str) -> dict[str, ResolvedFlagMetric]:
        """Flag metrics feeding ``service`` in ``environment``.

        Raises:
            ServiceNotSupportedError: No health definition for ``service``.
            EnvironmentNotSupportedError: ``environment`` is undeclared, or a
                declared flag has a metric but not for this environment.
        """
        health = self.definitions.health.get(service)
        if health is None:
            raise ServiceNotSupportedError(service)
        if environment not in self.definitions.environments:
            raise EnvironmentNotSupportedError(service, environment)

        registry = self.definitions.flags
        metrics: dict[str, ResolvedFlagMetric] = {}
        for flag_name in health.flags:
            if flag_name not in registry:
                logger.debug("Flag %s of %s has no metric definition", flag_name, service)
                continue
            metric = registry.get(flag_name, environment)
            if metric is None:
                logger.debug("Flag %s has no metric for environment %s", flag_name, environment)
                raise EnvironmentNotSupportedError(service, environment)
            metrics[flag_name] = metric
        return metrics

    async def get_service_health(
        self,
        service: str,
        environment: str,
        time_range: TimeRange,
        max_data_points: int = DEFAULT_MAX_DATA_POINTS,
    ) -> ServiceHealth:
        """Evaluate ``service`` in ``environment`` over ``time_range``.

        Raises:
            ServiceNotSupportedError: Unknown service.
            EnvironmentNotSupportedError: Unknown environment for the service.
            HealthIndeterminateError: An expression references a flag that
                has no value in the evaluated map.
            TsdbError: The TSDB query failed.
        """
        metrics = self.flag_metrics(service, environment)
        health = self.definitions.health[service]

        series = await self.source.fetch(
            {name: metric.query for name, metric in metrics.items()},
            time_range,
            max_data_points,
        )

        samples: dict[int, dict[str, bool]] = defaultdict(dict)
        for item in series:
            metric = metrics.get(item.target)
            if metric is None:
                logger.warning("TSDB response contains unknown target: %s", item.target)
                continue
            for value, timestamp in item.datapoints:
                if value is None:
                    continue
                samples[timestamp][item.target] = metric.evaluate(value)

        points = []
        for timestamp in sorted(samples):
            flags = {name: samples[timestamp].get(name, False) for name in metrics}
            try:
                result = health.compute(flags)
            except UnknownFlagError as exc:
                raise HealthIndeterminateError(service, environment, str(exc)) from exc

            triggered = [
                TriggeredFlag(
                    name=name,
                    query=metrics[name].query,
                    op=metrics[name].op,
                    threshold=metrics[name].threshold,
                )
                for name, value in flags.items()
                if value
            ]
            points.append(
                HealthPoint(
                    timestamp=timestamp,
                    severity=result.severity,
                    triggered_flags=triggered,
                    matched_expression=result.matched_expression,
                )
            )

        if points:
            latest = points[-1]
            for flag in latest.triggered_flags:
                logger.info(
                    "%s in %s: flag %s triggered (%s %s %s)",
                    service,
                    environment,
                    flag.name,
                    flag.query,
                    flag.op.symbol,
                    flag.threshold,
                )
            emit_health_evaluated(service, environment, latest.severity, latest.flag_names)

        return ServiceHealth(
            name=service,
            service_category=health.category,
            environment=environment,
            metrics=points,
        )
