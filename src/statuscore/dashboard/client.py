"""
Async client for the status dashboard API (v2).

Every request carries the configured timeout.  Connection failures,
timeouts, non-2xx responses and unparseable bodies all surface as
``DashboardError`` with the endpoint, status and body attached, so the
reporter can log them and move on to the next pair.

Usage::

    async with StatusDashboardClient(url, headers=build_auth_headers(secret)) as client:
        components = await client.fetch_components()
        await client.create_incident(incident)
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from statuscore.dashboard.models import IncidentRequest, RemoteComponent
from statuscore.errors import DashboardError
from statuscore.timeouts import DASHBOARD_REQUEST_TIMEOUT_S

logger = logging.getLogger(__name__)

COMPONENTS_PATH = "/v2/components"
INCIDENTS_PATH = "/v2/incidents"

_COMPONENT_LIST = TypeAdapter(list[RemoteComponent])


class StatusDashboardClient:
    """Client for the status dashboard component and incident endpoints."""

    def __init__(
        self,
        base_url: str,
        headers: Optional[dict[str, str]] = None,
        timeout: float = DASHBOARD_REQUEST_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Status dashboard base URL
            headers: Extra headers (e.g. Authorization) sent with every request
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers or {},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "StatusDashboardClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        endpoint = f"{self.base_url}{path}"
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise DashboardError(f"Request timed out: {exc}", endpoint) from exc
        except httpx.HTTPError as exc:
            raise DashboardError(f"Request failed: {exc}", endpoint) from exc

        if not response.is_success:
            raise DashboardError(
                f"{method} {path} returned an error",
                endpoint,
                status_code=response.status_code,
                body=response.text,
            )
        return response

    async def fetch_components(self) -> list[RemoteComponent]:
        """Fetch every component known to the dashboard."""
        response = await self._request("GET", COMPONENTS_PATH)
        try:
            components = _COMPONENT_LIST.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise DashboardError(
                f"Invalid components response: {exc}",
                f"{self.base_url}{COMPONENTS_PATH}",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        logger.debug("Fetched %d components from status dashboard", len(components))
        return components

    async def create_incident(self, incident: IncidentRequest) -> None:
        """Submit an incident.  Duplicate open incidents are deduplicated remotely."""
        await self._request("POST", INCIDENTS_PATH, json=incident.to_payload())
        logger.debug(
            "Created incident impact=%d components=%s",
            incident.impact,
            incident.component_ids,
        )
