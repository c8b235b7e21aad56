"""Tests for the status dashboard HTTP client."""

import asyncio
import json

import httpx
import pytest

from statuscore.dashboard.client import StatusDashboardClient
from statuscore.dashboard.incident import build_incident
from statuscore.errors import DashboardError

BASE_URL = "https://status.example.com"


def _client(handler, headers=None):
    return StatusDashboardClient(
        BASE_URL, headers=headers, transport=httpx.MockTransport(handler)
    )


def _run(coro_factory, handler, headers=None):
    async def _go():
        async with _client(handler, headers) as client:
            return await coro_factory(client)

    return asyncio.run(_go())


class TestFetchComponents:
    def test_parses_components(self):
        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/v2/components"
            return httpx.Response(200, json=[
                {"id": 218, "name": "Storage", "attributes": [
                    {"name": "region", "value": "EU-DE"},
                    {"name": "category", "value": "Storage"},
                ]},
                {"id": 3, "name": "DNS", "attributes": [], "extra": "ignored"},
            ])

        components = _run(lambda c: c.fetch_components(), handler)

        assert [c.id for c in components] == [218, 3]
        assert components[0].attributes[0].name == "region"

    def test_sends_auth_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=[])

        _run(lambda c: c.fetch_components(), handler, headers={"Authorization": "Bearer t"})
        assert seen["auth"] == "Bearer t"

    def test_non_2xx_is_dashboard_error(self):
        def handler(request):
            return httpx.Response(503, text="maintenance")

        with pytest.raises(DashboardError) as exc_info:
            _run(lambda c: c.fetch_components(), handler)
        assert exc_info.value.status_code == 503
        assert exc_info.value.body == "maintenance"
        assert exc_info.value.endpoint == f"{BASE_URL}/v2/components"

    def test_invalid_body_is_dashboard_error(self):
        def handler(request):
            return httpx.Response(200, json={"not": "a list"})

        with pytest.raises(DashboardError, match="Invalid components response"):
            _run(lambda c: c.fetch_components(), handler)

    def test_timeout_is_dashboard_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(DashboardError, match="timed out"):
            _run(lambda c: c.fetch_components(), handler)

    def test_connection_error_is_dashboard_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(DashboardError, match="Request failed"):
            _run(lambda c: c.fetch_components(), handler)


class TestCreateIncident:
    def test_posts_payload(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 1})

        incident = build_incident(component_id=218, impact=2, sample_timestamp=1700000000)
        _run(lambda c: c.create_incident(incident), handler)

        assert seen["method"] == "POST"
        assert seen["path"] == "/v2/incidents"
        assert seen["body"]["components"] == [218]
        assert seen["body"]["system"] is True
        assert seen["body"]["type"] == "incident"

    def test_failure_carries_status_and_body(self):
        def handler(request):
            return httpx.Response(422, text='{"error": "bad impact"}')

        incident = build_incident(component_id=218, impact=2, sample_timestamp=1700000000)
        with pytest.raises(DashboardError) as exc_info:
            _run(lambda c: c.create_incident(incident), handler)
        assert exc_info.value.status_code == 422
        assert "bad impact" in exc_info.value.body
