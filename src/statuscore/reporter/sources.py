"""
Where the reporter gets service health from.

- ``LocalHealthSource`` evaluates health in-process against the TSDB.
- ``HttpHealthSource`` asks a running ``statuscore serve`` instance via
  ``GET /api/v1/health``, for deployments that split the API from the
  reporter.

Both return a ``ServiceHealth`` and raise the same errors, so the
workflow does not care which one it holds.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx
from pydantic import ValidationError

from statuscore.errors import (
    EnvironmentNotSupportedError,
    HealthIndeterminateError,
    ServiceNotSupportedError,
    TsdbError,
)
from statuscore.health.evaluator import HealthEvaluator, ServiceHealth
from statuscore.timeouts import DEFAULT_MAX_DATA_POINTS, HEALTH_API_TIMEOUT_S
from statuscore.tsdb.base import TimeRange

logger = logging.getLogger(__name__)

HEALTH_PATH = "/api/v1/health"


class HealthSource(Protocol):
    async def get_service_health(
        self,
        service: str,
        environment: str,
        time_range: TimeRange,
        max_data_points: int = DEFAULT_MAX_DATA_POINTS,
    ) -> ServiceHealth:
        ...


class LocalHealthSource:
    """In-process health evaluation."""

    def __init__(self, evaluator: HealthEvaluator):
        self.evaluator = evaluator

    async def get_service_health(
        self,
        service: str,
        environment: str,
        time_range: TimeRange,
        max_data_points: int = DEFAULT_MAX_DATA_POINTS,
    ) -> ServiceHealth:
        return await self.evaluator.get_service_health(
            service, environment, time_range, max_data_points
        )


class HttpHealthSource:
    """Health from the HTTP API of a running server."""

    def __init__(
        self,
        base_url: str,
        timeout: float = HEALTH_API_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "HttpHealthSource":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def get_service_health(
        self,
        service: str,
        environment: str,
        time_range: TimeRange,
        max_data_points: int = DEFAULT_MAX_DATA_POINTS,
    ) -> ServiceHealth:
        """Query ``/api/v1/health``.

        Raises:
            ServiceNotSupportedError / EnvironmentNotSupportedError: HTTP 409.
            HealthIndeterminateError: HTTP 500 reporting indeterminate health.
            TsdbError: Any other failure.
        """
        endpoint = f"{self.base_url}{HEALTH_PATH}"
        params = {
            "service": service,
            "environment": environment,
            "from": time_range.start,
            "to": time_range.end,
            "max_data_points": max_data_points,
        }
        try:
            response = await self._http.get(HEALTH_PATH, params=params)
        except httpx.HTTPError as exc:
            raise TsdbError(f"Health request failed: {exc}", endpoint) from exc

        if response.status_code == 409:
            message = _error_message(response)
            if "environment" in message.lower():
                raise EnvironmentNotSupportedError(service, environment)
            raise ServiceNotSupportedError(service)
        if response.status_code == 500 and "indeterminate" in _error_message(response):
            raise HealthIndeterminateError(service, environment, _error_message(response))
        if not response.is_success:
            raise TsdbError(
                "Health request returned an error",
                endpoint,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return ServiceHealth.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TsdbError(
                f"Invalid health response: {exc}",
                endpoint,
                status_code=response.status_code,
                body=response.text,
            ) from exc


def _error_message(response: httpx.Response) -> str:
    try:
        return str(response.json().get("message", ""))
    except (ValueError, AttributeError):
        return response.text
