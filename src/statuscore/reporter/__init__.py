"""
Reporting workflow: polls service health and reports incidents.

Public API::

    from statuscore.reporter import (
        ReportingWorkflow,
        ReporterState,
        PairOutcome,
        LocalHealthSource,
        HttpHealthSource,
    )
"""

from statuscore.reporter.sources import HealthSource, HttpHealthSource, LocalHealthSource
from statuscore.reporter.workflow import (
    PairOutcome,
    PairResult,
    ReporterState,
    ReportingWorkflow,
)

__all__ = [
    "ReportingWorkflow",
    "ReporterState",
    "PairOutcome",
    "PairResult",
    "HealthSource",
    "LocalHealthSource",
    "HttpHealthSource",
]
