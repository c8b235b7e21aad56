"""
Component resolution with a single refresh on miss.

``ComponentResolver`` owns the current ``ComponentCache`` reference.  A
lookup that misses triggers exactly one rebuild from a fresh fetch and
one retried lookup; a second miss is final for that lookup.  Refreshes
replace the cache reference wholesale, so a reader never observes a
partially built cache.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Optional

from statuscore.dashboard.cache import ComponentCache
from statuscore.dashboard.models import LogicalComponent, RemoteComponent
from statuscore.errors import DashboardError

logger = logging.getLogger(__name__)

FetchComponents = Callable[[], Awaitable[list[RemoteComponent]]]


@dataclass(frozen=True)
class Resolution:
    """Result of resolving one logical component."""

    component_id: Optional[int]
    refreshed: bool = False
    refresh_error: Optional[DashboardError] = None

    @property
    def found(self) -> bool:
        return self.component_id is not None


class ComponentResolver:
    """Resolves logical components to dashboard IDs."""

    def __init__(self, fetch: FetchComponents, cache: Optional[ComponentCache] = None):
        self._fetch = fetch
        self._cache = cache if cache is not None else ComponentCache()

    @property
    def cache(self) -> ComponentCache:
        return self._cache

    def replace(self, cache: ComponentCache) -> None:
        """Swap in a new cache snapshot."""
        self._cache = cache

    async def refresh(self) -> ComponentCache:
        """Rebuild the cache from a fresh fetch.

        Raises:
            DashboardError: The fetch failed; the current cache is kept.
        """
        components = await self._fetch()
        self._cache = ComponentCache.build(components)
        return self._cache

    async def resolve(self, component: LogicalComponent) -> Resolution:
        """Resolve ``component``, refreshing the cache at most once."""
        component_id = self._cache.resolve(component)
        if component_id is not None:
            return Resolution(component_id)

        logger.info(
            "Component %s not found in cache, refreshing", component.describe()
        )
        try:
            cache = await self.refresh()
        except DashboardError as exc:
            logger.warning(
                "Failed to refresh component cache for %s: %s",
                component.describe(),
                exc,
            )
            return Resolution(None, refreshed=False, refresh_error=exc)

        return Resolution(cache.resolve(component), refreshed=True)
