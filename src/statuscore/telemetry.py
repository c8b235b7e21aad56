"""
OTel span event emission helpers for health evaluation and reporting.

Events are attached to the current span when it is recording; with no
tracer provider configured by the host process they are no-ops.

Usage::

    from statuscore.telemetry import emit_incident_created, tracer

    with tracer.start_as_current_span("statuscore.reporter.cycle"):
        emit_incident_created("compute", "production", 218, 2)
"""

from __future__ import annotations

import logging
from typing import Sequence

from opentelemetry import trace as otel_trace

logger = logging.getLogger(__name__)

tracer = otel_trace.get_tracer("statuscore")


def _add_span_event(name: str, attributes: dict[str, str | int | float | bool | Sequence[str]]) -> None:
    """Add an event to the current OTel span if available."""
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_health_evaluated(
    service: str,
    environment: str,
    severity: int,
    triggered_flags: Sequence[str],
) -> None:
    """Emit a span event with the evaluated severity of a pair.

    Event name: ``statuscore.health.evaluated``
    """
    _add_span_event(
        "statuscore.health.evaluated",
        {
            "statuscore.service": service,
            "statuscore.environment": environment,
            "statuscore.health.severity": severity,
            "statuscore.health.triggered_flags": list(triggered_flags),
        },
    )


def emit_incident_created(
    service: str,
    environment: str,
    component_id: int,
    impact: int,
) -> None:
    """Emit a span event for a submitted incident.

    Event name: ``statuscore.incident.created``
    """
    _add_span_event(
        "statuscore.incident.created",
        {
            "statuscore.service": service,
            "statuscore.environment": environment,
            "statuscore.component.id": component_id,
            "statuscore.incident.impact": impact,
        },
    )


def emit_component_missing(
    service: str,
    environment: str,
    component_name: str,
) -> None:
    """Emit a span event for a component that could not be resolved.

    Event name: ``statuscore.component.missing``
    """
    _add_span_event(
        "statuscore.component.missing",
        {
            "statuscore.service": service,
            "statuscore.environment": environment,
            "statuscore.component.name": component_name,
        },
    )
