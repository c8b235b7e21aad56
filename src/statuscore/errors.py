"""
Exception hierarchy for StatusCore.

Errors fall into four groups:

- **Configuration errors** are raised while loading monitoring definitions
  and are fatal.
- **Query errors** (unsupported service/environment, expression failures)
  are raised for a single health query.
- **Transport errors** wrap failures talking to the TSDB or the status
  dashboard.  They are recoverable: the caller abandons the current
  operation for one (service, environment) pair only.
- **Startup failures** mean the reporter could not load its component
  cache and must not start polling.
"""

from __future__ import annotations

from typing import Optional


class StatusCoreError(Exception):
    """Base class for all StatusCore errors."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(StatusCoreError):
    """Monitoring definitions are invalid or inconsistent."""


# ---------------------------------------------------------------------------
# Health queries
# ---------------------------------------------------------------------------


class ServiceNotSupportedError(StatusCoreError):
    """Requested service has no health definition."""

    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Requested service not supported: {service}")


class EnvironmentNotSupportedError(StatusCoreError):
    """Requested environment is not configured for the service."""

    def __init__(self, service: str, environment: str):
        self.service = service
        self.environment = environment
        super().__init__(
            f"Environment {environment!r} not supported for service {service!r}"
        )


class ExpressionError(StatusCoreError):
    """Base class for health expression failures."""


class ExpressionSyntaxError(ExpressionError):
    """Health expression could not be parsed."""

    def __init__(self, expression: str, position: int, reason: str):
        self.expression = expression
        self.position = position
        self.reason = reason
        super().__init__(
            f"Invalid health expression {expression!r} at position {position}: {reason}"
        )


class UnknownFlagError(ExpressionError):
    """Expression referenced a flag that is absent from the flag map."""

    def __init__(self, flag: str):
        self.flag = flag
        super().__init__(f"Flag {flag!r} is not available for evaluation")


class HealthIndeterminateError(StatusCoreError):
    """Health of a service-environment pair could not be determined."""

    def __init__(self, service: str, environment: str, reason: str):
        self.service = service
        self.environment = environment
        self.reason = reason
        super().__init__(
            f"Health of {service!r} in {environment!r} is indeterminate: {reason}"
        )


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class TransportError(StatusCoreError):
    """Outbound HTTP call failed (connection, timeout, non-2xx or bad body)."""

    def __init__(
        self,
        message: str,
        endpoint: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        details = [message, f"endpoint={endpoint}"]
        if status_code is not None:
            details.append(f"status={status_code}")
        if body:
            details.append(f"body={body!r}")
        super().__init__(", ".join(details))


class TsdbError(TransportError):
    """Failure querying the time-series database."""


class DashboardError(TransportError):
    """Failure talking to the status dashboard API."""


# ---------------------------------------------------------------------------
# Reporter lifecycle
# ---------------------------------------------------------------------------


class StartupFailedError(StatusCoreError):
    """Component cache could not be loaded within the allowed attempts."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Component cache could not be loaded after {attempts} attempts: {last_error}"
        )
