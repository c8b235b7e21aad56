"""
Status dashboard integration: component cache, resolution and incidents.

Public API::

    from statuscore.dashboard import (
        ComponentAttribute,
        LogicalComponent,
        RemoteComponent,
        IncidentRequest,
        ComponentKey,
        ComponentCache,
        ComponentResolver,
        StatusDashboardClient,
        build_auth_headers,
        build_incident,
    )
"""

from statuscore.dashboard.auth import build_auth_headers
from statuscore.dashboard.cache import ComponentCache, ComponentKey
from statuscore.dashboard.client import StatusDashboardClient
from statuscore.dashboard.incident import build_incident
from statuscore.dashboard.models import (
    ComponentAttribute,
    IncidentRequest,
    LogicalComponent,
    RemoteComponent,
)
from statuscore.dashboard.resolver import ComponentResolver, Resolution

__all__ = [
    "ComponentAttribute",
    "LogicalComponent",
    "RemoteComponent",
    "IncidentRequest",
    "ComponentKey",
    "ComponentCache",
    "ComponentResolver",
    "Resolution",
    "StatusDashboardClient",
    "build_auth_headers",
    "build_incident",
]
