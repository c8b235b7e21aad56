"""
Pydantic v2 models for the monitoring definitions YAML format.

The document declares metric templates, environments, flag metrics
(template instances per service and environment), service health
definitions (weighted boolean expressions over flags) and the connection
settings for the TSDB and the status dashboard.

All models use ``extra="forbid"`` to reject unknown keys at parse time.
Cross references (template names, environment names, flags used by
expressions) are checked when the document is compiled by
``statuscore.definitions.registry``.

Usage::

    from statuscore.definitions.schema import MonitorConfig
    import yaml

    with open("config.yaml") as fh:
        raw = yaml.safe_load(fh)
    config = MonitorConfig.model_validate(raw)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from statuscore.health.flags import Comparison
from statuscore.timeouts import (
    DASHBOARD_REQUEST_TIMEOUT_S,
    DEFAULT_MAX_DATA_POINTS,
    HEALTH_QUERY_FROM,
    HEALTH_QUERY_TO,
    REPORTER_POLL_INTERVAL_S,
    STARTUP_CACHE_MAX_ATTEMPTS,
    STARTUP_CACHE_RETRY_DELAY_S,
    TSDB_REQUEST_TIMEOUT_S,
)

DEFAULT_INCIDENT_TITLE = "System incident from monitoring system"
DEFAULT_INCIDENT_DESCRIPTION = ""


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------


class DatasourceConfig(BaseModel):
    """TSDB (Graphite) connection."""

    model_config = ConfigDict(extra="forbid")

    url: str = Field(..., min_length=1, description="TSDB base URL")
    timeout: float = Field(
        TSDB_REQUEST_TIMEOUT_S, gt=0, description="Query timeout in seconds"
    )


class ServerConfig(BaseModel):
    """HTTP API binding."""

    model_config = ConfigDict(extra="forbid")

    address: str = "0.0.0.0"
    port: int = Field(3000, ge=1, le=65535)


class StatusDashboardConfig(BaseModel):
    """Status dashboard connection and reporter knobs."""

    model_config = ConfigDict(extra="forbid")

    url: str = Field(..., min_length=1, description="Status dashboard base URL")
    secret: Optional[str] = Field(
        None, description="HMAC secret for signing the bearer JWT"
    )
    jwt_preferred_username: Optional[str] = None
    jwt_group: Optional[str] = None
    poll_interval: float = Field(REPORTER_POLL_INTERVAL_S, gt=0)
    retry_count: int = Field(STARTUP_CACHE_MAX_ATTEMPTS, ge=1)
    retry_delay: float = Field(STARTUP_CACHE_RETRY_DELAY_S, ge=0)
    timeout: float = Field(DASHBOARD_REQUEST_TIMEOUT_S, gt=0)
    incident_title: str = DEFAULT_INCIDENT_TITLE
    incident_description: str = DEFAULT_INCIDENT_DESCRIPTION


class HealthQueryConfig(BaseModel):
    """Time window the reporter evaluates every cycle."""

    model_config = ConfigDict(extra="forbid")

    query_from: str = HEALTH_QUERY_FROM
    query_to: str = HEALTH_QUERY_TO
    max_data_points: int = Field(DEFAULT_MAX_DATA_POINTS, ge=1)


# ---------------------------------------------------------------------------
# Metrics and flags
# ---------------------------------------------------------------------------


class MetricTemplate(BaseModel):
    """Query template with a comparison against a default threshold."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    query: str = Field(
        ..., min_length=1,
        description="TSDB query; $service and $environment are substituted",
    )
    op: Comparison
    threshold: float


class MetricTemplateRef(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)


class FlagEnvironment(BaseModel):
    """An environment a flag metric applies to, with optional override."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    threshold: Optional[float] = None


class FlagMetricDefinition(BaseModel):
    """One flag per listed environment, built from a template."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    service: str = Field(..., min_length=1)
    template: MetricTemplateRef
    environments: list[FlagEnvironment] = Field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.service}.{self.name}"


class EnvironmentDefinition(BaseModel):
    """A monitored environment and the dashboard attributes identifying it."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    attributes: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Service health
# ---------------------------------------------------------------------------


class HealthExpressionDefinition(BaseModel):
    """Boolean formula over flag names and the severity it signals."""

    model_config = ConfigDict(extra="forbid")

    expression: str = Field(..., min_length=1)
    weight: int = Field(
        ..., ge=0, le=3,
        description="Severity when true: 0 healthy, higher is worse (dashboard impact)",
    )


class ServiceHealthDefinition(BaseModel):
    """How to derive a service's severity from its flags."""

    model_config = ConfigDict(extra="forbid")

    service: str = Field(..., min_length=1)
    component_name: Optional[str] = Field(
        None, description="Display name of the status dashboard component"
    )
    category: str
    metrics: list[str] = Field(
        default_factory=list, description="Flag names the expressions may use"
    )
    expressions: list[HealthExpressionDefinition] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Top-level document
# ---------------------------------------------------------------------------


class MonitorConfig(BaseModel):
    """Root model for the monitoring definitions document."""

    model_config = ConfigDict(extra="forbid")

    datasource: DatasourceConfig
    server: ServerConfig = Field(default_factory=ServerConfig)
    metric_templates: dict[str, MetricTemplate] = Field(default_factory=dict)
    environments: list[EnvironmentDefinition] = Field(default_factory=list)
    flag_metrics: list[FlagMetricDefinition] = Field(default_factory=list)
    health_metrics: dict[str, ServiceHealthDefinition] = Field(default_factory=dict)
    status_dashboard: Optional[StatusDashboardConfig] = None
    health_query: HealthQueryConfig = Field(default_factory=HealthQueryConfig)
