"""
Reporting workflow: service health -> status dashboard incidents.

Lifecycle::

    UNINITIALIZED -> CACHE_LOADING -> READY -> POLLING -> READY -> ...
                                  \\-> STARTUP_FAILED

``start()`` loads the component cache, retrying a bounded number of
times with a fixed delay; if every attempt fails the workflow ends in
``STARTUP_FAILED`` and never polls.  ``run_cycle()`` walks every declared
(environment, service) pair in order, sequentially:

- severity 0 -> no action;
- otherwise resolve the dashboard component (one cache refresh on a
  miss) and submit one incident with ``impact`` = severity.

Every failure is contained to its pair and recorded as a
``PairOutcome``; a submission that fails is not retried until the next
cycle re-evaluates the pair.

Usage::

    workflow = ReportingWorkflow(definitions, health_source, dashboard)
    await workflow.start()
    await workflow.run(stop_event)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from statuscore.dashboard.client import StatusDashboardClient
from statuscore.dashboard.incident import build_incident
from statuscore.dashboard.resolver import ComponentResolver
from statuscore.definitions.registry import MonitorDefinitions
from statuscore.definitions.schema import StatusDashboardConfig
from statuscore.errors import (
    DashboardError,
    EnvironmentNotSupportedError,
    HealthIndeterminateError,
    ServiceNotSupportedError,
    StartupFailedError,
    TransportError,
)
from statuscore.logger import ReporterLogger
from statuscore.reporter.sources import HealthSource
from statuscore.telemetry import emit_component_missing, emit_incident_created, tracer
from statuscore.tsdb.base import TimeRange

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ReporterState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CACHE_LOADING = "cache_loading"
    READY = "ready"
    POLLING = "polling"
    STARTUP_FAILED = "startup_failed"
    STOPPED = "stopped"


class PairOutcome(str, Enum):
    """What happened to one (environment, service) pair in a cycle."""

    NO_ACTION = "no_action"
    REPORTED = "reported"
    FAILED = "failed"
    COMPONENT_MISSING = "component_missing"
    INDETERMINATE = "indeterminate"
    HEALTH_UNAVAILABLE = "health_unavailable"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PairResult:
    environment: str
    service: str
    outcome: PairOutcome
    severity: Optional[int] = None
    component_id: Optional[int] = None


class ReportingWorkflow:
    """Drives the startup cache load and the polling cycles."""

    def __init__(
        self,
        definitions: MonitorDefinitions,
        health_source: HealthSource,
        dashboard: StatusDashboardClient,
        settings: Optional[StatusDashboardConfig] = None,
        events: Optional[ReporterLogger] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize the workflow.

        Args:
            definitions: Compiled monitoring definitions
            health_source: Where service health comes from
            dashboard: Status dashboard API client
            settings: Reporter knobs; defaults to ``definitions.config.status_dashboard``
            events: Structured event logger
            sleep: Awaitable sleep used between startup attempts (tests inject a no-op)
        """
        settings = settings or definitions.config.status_dashboard
        if settings is None:
            raise ValueError("status_dashboard settings are required for reporting")

        self.definitions = definitions
        self.health_source = health_source
        self.dashboard = dashboard
        self.settings = settings
        self.events = events or ReporterLogger(service_name="statuscore-reporter")
        self.resolver = ComponentResolver(dashboard.fetch_components)
        self.state = ReporterState.UNINITIALIZED
        self._sleep = sleep

        query = definitions.config.health_query
        self.time_range = TimeRange(start=query.query_from, end=query.query_to)
        self.max_data_points = query.max_data_points

    # -----------------------------------------------------------------------
    # Startup
    # -----------------------------------------------------------------------

    async def start(self) -> None:
        """Load the component cache.

        Raises:
            StartupFailedError: Every attempt failed; the state is
                ``STARTUP_FAILED``.
        """
        self.state = ReporterState.CACHE_LOADING
        attempts = self.settings.retry_count
        last_error: Optional[DashboardError] = None

        for attempt in range(1, attempts + 1):
            try:
                cache = await self.resolver.refresh()
            except DashboardError as exc:
                last_error = exc
                self.events.log_cache_load_failed(
                    attempt=attempt,
                    max_attempts=attempts,
                    error=str(exc),
                    retry_delay_seconds=self.settings.retry_delay,
                )
                if attempt < attempts:
                    await self._sleep(self.settings.retry_delay)
                continue

            self.events.log_cache_loaded(component_count=len(cache), attempt=attempt)
            self.state = ReporterState.READY
            return

        self.state = ReporterState.STARTUP_FAILED
        raise StartupFailedError(attempts, last_error)

    # -----------------------------------------------------------------------
    # Polling
    # -----------------------------------------------------------------------

    async def run_cycle(self) -> list[PairResult]:
        """Process every declared pair once, in declared order."""
        if self.state is not ReporterState.READY:
            raise RuntimeError(f"Cannot poll in state {self.state.value}")

        self.state = ReporterState.POLLING
        results = []
        try:
            with tracer.start_as_current_span("statuscore.reporter.cycle"):
                for environment, service in self.definitions.pairs():
                    results.append(await self.process_pair(environment, service))
        finally:
            self.state = ReporterState.READY

        logger.debug(
            "Cycle complete: %s",
            {outcome.value: sum(r.outcome is outcome for r in results) for outcome in PairOutcome},
        )
        return results

    async def process_pair(self, environment: str, service: str) -> PairResult:
        component = self.definitions.logical_component(service, environment)
        if component is None:
            logger.warning(
                "Service %s has no component_name, skipping in %s", service, environment
            )
            return PairResult(environment, service, PairOutcome.SKIPPED)

        try:
            health = await self.health_source.get_service_health(
                service, environment, self.time_range, self.max_data_points
            )
        except (ServiceNotSupportedError, EnvironmentNotSupportedError) as exc:
            logger.debug("Skipping %s in %s: %s", service, environment, exc)
            return PairResult(environment, service, PairOutcome.SKIPPED)
        except HealthIndeterminateError as exc:
            self.events.log_health_indeterminate(service, environment, exc.reason)
            return PairResult(environment, service, PairOutcome.INDETERMINATE)
        except TransportError as exc:
            self.events.log_health_unavailable(service, environment, str(exc))
            return PairResult(environment, service, PairOutcome.HEALTH_UNAVAILABLE)

        latest = health.latest
        if latest is None or latest.severity == 0:
            severity = latest.severity if latest else None
            return PairResult(environment, service, PairOutcome.NO_ACTION, severity)

        resolution = await self.resolver.resolve(component)
        if resolution.refreshed:
            self.events.log_cache_refreshed(
                component_count=len(self.resolver.cache),
                service=service,
                environment=environment,
            )
        if not resolution.found:
            self.events.log_component_missing(
                service=service,
                environment=environment,
                component_name=component.name,
                attributes=sorted(component.attributes, key=lambda a: a.sort_key()),
                severity=latest.severity,
            )
            emit_component_missing(service, environment, component.name)
            return PairResult(
                environment, service, PairOutcome.COMPONENT_MISSING, latest.severity
            )

        incident = build_incident(
            component_id=resolution.component_id,
            impact=latest.severity,
            sample_timestamp=latest.timestamp,
            title=self.settings.incident_title,
            description=self.settings.incident_description,
        )
        try:
            await self.dashboard.create_incident(incident)
        except DashboardError as exc:
            self.events.log_incident_failed(
                service=service,
                environment=environment,
                component_id=resolution.component_id,
                impact=latest.severity,
                error=str(exc),
                status_code=exc.status_code,
                body=exc.body,
            )
            return PairResult(
                environment, service, PairOutcome.FAILED,
                latest.severity, resolution.component_id,
            )

        self.events.log_incident_created(
            service=service,
            environment=environment,
            component_name=component.name,
            component_id=resolution.component_id,
            impact=latest.severity,
            start_date=incident.start_date,
            triggered_flags=latest.flag_names,
            matched_expression=latest.matched_expression,
        )
        emit_incident_created(service, environment, resolution.component_id, latest.severity)
        return PairResult(
            environment, service, PairOutcome.REPORTED,
            latest.severity, resolution.component_id,
        )

    async def run(self, stop: asyncio.Event, max_cycles: Optional[int] = None) -> None:
        """Start if needed, then poll until ``stop`` is set.

        Raises:
            StartupFailedError: The startup cache load failed.
        """
        if self.state is ReporterState.UNINITIALIZED:
            await self.start()

        cycles = 0
        while not stop.is_set():
            await self.run_cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break

            # Interruptible sleep: stop wakes us immediately
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.settings.poll_interval)
            except asyncio.TimeoutError:
                pass

        self.state = ReporterState.STOPPED
        logger.info("Reporter stopped after %d cycles", cycles)
