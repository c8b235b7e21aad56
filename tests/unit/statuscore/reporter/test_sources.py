"""Tests for reporter health sources."""

import asyncio

import httpx
import pytest

from statuscore.errors import (
    EnvironmentNotSupportedError,
    HealthIndeterminateError,
    ServiceNotSupportedError,
    TsdbError,
)
from statuscore.health.evaluator import HealthEvaluator
from statuscore.reporter.sources import HttpHealthSource, LocalHealthSource
from statuscore.tsdb.base import TimeRange

TIME_RANGE = TimeRange(start="-5min", end="-2min")

HEALTH_BODY = {
    "name": "compute",
    "service_category": "compute",
    "environment": "production",
    "metrics": [
        {
            "timestamp": 100,
            "severity": 2,
            "triggered_flags": [{
                "name": "compute.api-down",
                "query": "stats.counters.api.production.compute.failed_count",
                "op": "gt",
                "threshold": 5,
            }],
            "matched_expression": "compute.api-down",
        },
    ],
}


def _query(handler):
    async def _go():
        source = HttpHealthSource("http://statuscore:3000", transport=httpx.MockTransport(handler))
        async with source:
            return await source.get_service_health("compute", "production", TIME_RANGE)

    return asyncio.run(_go())


class TestHttpHealthSource:
    def test_parses_health(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=HEALTH_BODY)

        health = _query(handler)

        assert seen["path"] == "/api/v1/health"
        assert seen["params"] == {
            "service": "compute",
            "environment": "production",
            "from": "-5min",
            "to": "-2min",
            "max_data_points": "100",
        }
        assert health.latest.severity == 2
        assert health.latest.flag_names == ["compute.api-down"]

    def test_unknown_service(self):
        def handler(request):
            return httpx.Response(409, json={"message": "Requested service not supported: compute"})

        with pytest.raises(ServiceNotSupportedError):
            _query(handler)

    def test_unknown_environment(self):
        def handler(request):
            return httpx.Response(
                409, json={"message": "Environment 'production' not supported for service 'compute'"}
            )

        with pytest.raises(EnvironmentNotSupportedError):
            _query(handler)

    def test_indeterminate(self):
        def handler(request):
            return httpx.Response(500, json={"message": "Health of 'compute' is indeterminate: x"})

        with pytest.raises(HealthIndeterminateError):
            _query(handler)

    def test_other_failures(self):
        def handler(request):
            return httpx.Response(500, json={"message": "TSDB down"})

        with pytest.raises(TsdbError) as exc_info:
            _query(handler)
        assert exc_info.value.status_code == 500

    def test_connection_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TsdbError):
            _query(handler)


class TestLocalHealthSource:
    def test_delegates_to_evaluator(self, definitions, metric_source):
        metric_source.datapoints = {"compute.api-down": [(10, 100)]}
        source = LocalHealthSource(HealthEvaluator(definitions, metric_source))

        health = asyncio.run(source.get_service_health("compute", "production", TIME_RANGE))

        assert health.latest.severity == 2
