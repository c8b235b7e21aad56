"""
Graphite render API client.

Each flag query is wrapped in ``alias(<query>,'<flag name>')`` so the
returned series are named after the flags they feed.  RFC3339 bounds are
converted to Graphite's ``%H:%M_%Y%m%d`` absolute format; anything else
(``-5min``, ``now``) is passed through untouched.

Usage::

    async with GraphiteClient("https://graphite.example.com") as graphite:
        series = await graphite.fetch(
            {"compute.api-slow": "stats.prod.compute.latency"},
            TimeRange(start="-5min", end="-2min"),
        )
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from statuscore.errors import TsdbError
from statuscore.timeouts import DEFAULT_MAX_DATA_POINTS, TSDB_REQUEST_TIMEOUT_S
from statuscore.tsdb.base import MetricSeries, TimeRange

logger = logging.getLogger(__name__)

RENDER_PATH = "/render"
GRAPHITE_TIME_FORMAT = "%H:%M_%Y%m%d"

_SERIES_LIST = TypeAdapter(list[MetricSeries])


def alias_query(query: str, alias: str) -> str:
    return f"alias({query},'{alias}')"


def to_graphite_time(value: str) -> str:
    """Convert an RFC3339 timestamp to Graphite format; pass others through."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime(GRAPHITE_TIME_FORMAT)


class GraphiteClient:
    """Async client for the Graphite ``/render`` endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = TSDB_REQUEST_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "GraphiteClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @staticmethod
    def build_params(
        targets: Mapping[str, str],
        time_range: TimeRange,
        max_data_points: int,
    ) -> list[tuple[str, str]]:
        params = [
            ("format", "json"),
            ("maxDataPoints", str(max_data_points)),
            ("from", to_graphite_time(time_range.start)),
            ("until", to_graphite_time(time_range.end)),
        ]
        params.extend(("target", alias_query(query, name)) for name, query in targets.items())
        return params

    async def fetch(
        self,
        targets: Mapping[str, str],
        time_range: TimeRange,
        max_data_points: int = DEFAULT_MAX_DATA_POINTS,
    ) -> list[MetricSeries]:
        """Run all ``targets`` (name -> query) in one render request.

        Raises:
            TsdbError: On transport failure, non-2xx status or invalid body.
        """
        if not targets:
            return []

        endpoint = f"{self.base_url}{RENDER_PATH}"
        params = self.build_params(targets, time_range, max_data_points)
        logger.debug("Graphite query: %s", params)

        try:
            response = await self._http.get(RENDER_PATH, params=params)
        except httpx.TimeoutException as exc:
            raise TsdbError(f"Request timed out: {exc}", endpoint) from exc
        except httpx.HTTPError as exc:
            raise TsdbError(f"Request failed: {exc}", endpoint) from exc

        if not response.is_success:
            raise TsdbError(
                "Render request returned an error",
                endpoint,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return _SERIES_LIST.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise TsdbError(
                f"Invalid render response: {exc}",
                endpoint,
                status_code=response.status_code,
                body=response.text,
            ) from exc
