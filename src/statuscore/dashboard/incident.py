"""Incident construction for the status dashboard."""

from __future__ import annotations

from datetime import datetime, timezone

from statuscore.dashboard.models import IncidentRequest
from statuscore.definitions.schema import (
    DEFAULT_INCIDENT_DESCRIPTION,
    DEFAULT_INCIDENT_TITLE,
)


def format_start_date(sample_timestamp: int) -> str:
    """RFC3339 UTC timestamp one second before the triggering sample."""
    return datetime.fromtimestamp(sample_timestamp - 1, tz=timezone.utc).isoformat()


def build_incident(
    component_id: int,
    impact: int,
    sample_timestamp: int,
    title: str = DEFAULT_INCIDENT_TITLE,
    description: str = DEFAULT_INCIDENT_DESCRIPTION,
) -> IncidentRequest:
    """Build the incident reported for a degraded component.

    Args:
        component_id: Dashboard ID of the affected component
        impact: Severity of the triggering sample (1-3)
        sample_timestamp: Unix timestamp (seconds) of the triggering sample
        title: Incident title
        description: Incident description
    """
    return IncidentRequest(
        title=title,
        description=description,
        impact=impact,
        component_ids=[component_id],
        start_date=format_start_date(sample_timestamp),
        is_automatic=True,
        kind="incident",
    )
