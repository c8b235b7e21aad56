"""
StatusCore - service health from TSDB metrics to the status dashboard.

Raw metric samples are compared against thresholds to produce boolean
flags; weighted boolean expressions over those flags give each service a
severity (0 healthy, higher is worse).  A reporting workflow resolves the
dashboard component of every degraded service and opens an incident.

Key Features:
- Declarative YAML monitoring definitions (templates, flags, expressions)
- Health API with Grafana-compatible Graphite routes
- Reporter with startup retry and refresh-on-miss component resolution

Example usage:
    from statuscore import ConfigLoader, HealthEvaluator, GraphiteClient

    definitions = ConfigLoader().load(Path("config.yaml"))
    evaluator = HealthEvaluator(definitions, GraphiteClient(definitions.config.datasource.url))
    health = await evaluator.get_service_health("compute", "production", time_range)
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigLoader",
    "MonitorDefinitions",
    "HealthEvaluator",
    "GraphiteClient",
    "ReportingWorkflow",
    "compute_severity",
    "__version__",
]


# Lazy imports to avoid loading heavy dependencies at import time
def __getattr__(name: str):
    if name == "ConfigLoader":
        from statuscore.definitions.loader import ConfigLoader
        return ConfigLoader
    if name == "MonitorDefinitions":
        from statuscore.definitions.registry import MonitorDefinitions
        return MonitorDefinitions
    if name == "HealthEvaluator":
        from statuscore.health.evaluator import HealthEvaluator
        return HealthEvaluator
    if name == "GraphiteClient":
        from statuscore.tsdb.graphite import GraphiteClient
        return GraphiteClient
    if name == "ReportingWorkflow":
        from statuscore.reporter.workflow import ReportingWorkflow
        return ReportingWorkflow
    if name == "compute_severity":
        from statuscore.health.engine import compute_severity
        return compute_severity
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
