"""
Logging setup and structured reporter events.

Two pieces live here:

- ``configure_logging()`` installs the process-wide handler, emitting either
  one JSON object per line (for Loki) or human readable text.
- ``ReporterLogger`` emits structured JSON events for the reporting
  workflow.  Only decision points are logged: cache loads and refreshes,
  unresolved components, indeterminate health and incident submissions.

Logged events:
- cache.loaded
- cache.load_failed
- cache.refreshed
- component.missing
- health.indeterminate
- health.unavailable
- incident.created
- incident.failed

Usage:
    from statuscore.logger import ReporterLogger

    events = ReporterLogger(service_name="statuscore-reporter")
    events.log_incident_created(
        service="compute", environment="production",
        component_name="Compute", component_id=218, impact=2,
    )
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

# Structured event logger for Loki
_events_logger = logging.getLogger("statuscore.events")
_events_logger.setLevel(logging.INFO)
_events_logger.propagate = False

# Default handler outputs JSON to stdout (for container/Loki pickup)
if not _events_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _events_logger.addHandler(handler)


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "info", fmt: str = "json") -> None:
    """
    Configure the root logger for a StatusCore process.

    Args:
        level: debug, info, warning or error
        fmt: json (one object per line) or text
    """
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Keep HTTP client chatter out of info-level logs
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _format_attributes(attributes: Optional[Iterable[Any]]) -> Dict[str, str]:
    if not attributes:
        return {}
    return {attr.name: attr.value for attr in attributes}


class ReporterLogger:
    """
    Structured logger for reporting workflow events.

    Outputs JSON logs designed for Loki ingestion and querying.
    Each log entry includes standard fields for filtering:
    - service, environment
    - event type and event-specific attributes
    """

    def __init__(
        self,
        service_name: str = "statuscore",
        extra_labels: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize reporter logger.

        Args:
            service_name: Service name for log attribution
            extra_labels: Additional labels for Loki filtering
        """
        self.service_name = service_name
        self.extra_labels = extra_labels or {}
        self._logger = _events_logger

    def _emit(
        self,
        event: str,
        level: str = "info",
        **fields: Any,
    ) -> None:
        """
        Emit a structured log entry.

        Args:
            event: Event type (e.g., "incident.created")
            level: Log level (info, warn, error)
            **fields: Event-specific fields; ``None`` values are dropped
        """
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "emitter": self.service_name,
        }
        entry.update({k: v for k, v in fields.items() if v is not None})

        if self.extra_labels:
            entry["labels"] = self.extra_labels

        log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_cache_loaded(self, component_count: int, attempt: int) -> None:
        """Log a successful startup component cache load."""
        self._emit(
            event="cache.loaded",
            component_count=component_count,
            attempt=attempt,
        )

    def log_cache_load_failed(
        self,
        attempt: int,
        max_attempts: int,
        error: str,
        retry_delay_seconds: Optional[float] = None,
    ) -> None:
        """Log a failed startup cache load attempt."""
        final = attempt >= max_attempts
        self._emit(
            event="cache.load_failed",
            level="error" if final else "warn",
            attempt=attempt,
            max_attempts=max_attempts,
            error=error,
            retry_delay_seconds=None if final else retry_delay_seconds,
            final=final,
        )

    def log_cache_refreshed(
        self,
        component_count: int,
        service: str,
        environment: str,
    ) -> None:
        """Log a cache rebuild triggered by a resolution miss."""
        self._emit(
            event="cache.refreshed",
            component_count=component_count,
            service=service,
            environment=environment,
        )

    def log_component_missing(
        self,
        service: str,
        environment: str,
        component_name: str,
        attributes: Optional[Iterable[Any]] = None,
        severity: Optional[int] = None,
    ) -> None:
        """Log a component that could not be resolved even after a refresh."""
        self._emit(
            event="component.missing",
            level="warn",
            service=service,
            environment=environment,
            component_name=component_name,
            component_attributes=_format_attributes(attributes),
            severity=severity,
        )

    def log_health_indeterminate(
        self,
        service: str,
        environment: str,
        reason: str,
    ) -> None:
        """Log a pair whose health could not be determined this cycle."""
        self._emit(
            event="health.indeterminate",
            level="warn",
            service=service,
            environment=environment,
            reason=reason,
        )

    def log_health_unavailable(
        self,
        service: str,
        environment: str,
        error: str,
    ) -> None:
        """Log a pair whose health query failed this cycle."""
        self._emit(
            event="health.unavailable",
            level="error",
            service=service,
            environment=environment,
            error=error,
        )

    def log_incident_created(
        self,
        service: str,
        environment: str,
        component_name: str,
        component_id: int,
        impact: int,
        start_date: Optional[str] = None,
        triggered_flags: Optional[list] = None,
        matched_expression: Optional[str] = None,
    ) -> None:
        """Log a successfully submitted incident."""
        self._emit(
            event="incident.created",
            service=service,
            environment=environment,
            component_name=component_name,
            component_id=component_id,
            impact=impact,
            start_date=start_date,
            triggered_flags=triggered_flags,
            matched_expression=matched_expression,
        )

    def log_incident_failed(
        self,
        service: str,
        environment: str,
        component_id: int,
        impact: int,
        error: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        """Log an incident submission failure (not retried this cycle)."""
        self._emit(
            event="incident.failed",
            level="error",
            service=service,
            environment=environment,
            component_id=component_id,
            impact=impact,
            error=error,
            status_code=status_code,
            body=body,
        )
