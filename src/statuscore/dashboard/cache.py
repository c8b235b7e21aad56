"""
Component ID cache with subset attribute matching.

The cache maps a canonical ``ComponentKey`` (name + attributes sorted by
attribute name) to the dashboard-assigned component ID.  It is built once
from a snapshot of all remote components and never mutated: a refresh
builds a new cache and the owner swaps its reference.

Resolution is a subset match: a logical component matches a cached entry
with the same name when every logical attribute is present, with the
same value, in the entry's attributes.  The entry may carry extra
attributes.  When several entries match, the first one in fetch order
wins.

Usage::

    cache = ComponentCache.build(remote_components)
    component_id = cache.resolve(
        LogicalComponent.from_mapping("Storage", {"region": "EU-DE"})
    )
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from statuscore.dashboard.models import (
    ComponentAttribute,
    LogicalComponent,
    RemoteComponent,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentKey:
    """Order-independent identity of a component: name + sorted attributes."""

    name: str
    attributes: tuple[ComponentAttribute, ...]

    @classmethod
    def of(cls, name: str, attributes: Iterable[ComponentAttribute]) -> "ComponentKey":
        return cls(name, tuple(sorted(attributes, key=ComponentAttribute.sort_key)))

    def matches(self, component: LogicalComponent) -> bool:
        """True if ``component`` has this name and a subset of these attributes."""
        return self.name == component.name and component.attributes.issubset(
            self.attributes
        )


class ComponentCache(Mapping[ComponentKey, int]):
    """Immutable snapshot of dashboard components keyed by ``ComponentKey``."""

    def __init__(self, entries: Optional[Mapping[ComponentKey, int]] = None):
        self._entries = MappingProxyType(dict(entries or {}))

    @classmethod
    def build(cls, components: Iterable[RemoteComponent]) -> "ComponentCache":
        entries: dict[ComponentKey, int] = {}
        for component in components:
            key = ComponentKey.of(component.name, component.attributes)
            if key in entries:
                logger.debug(
                    "Duplicate dashboard component %s (ids %d, %d), keeping the first",
                    component.name,
                    entries[key],
                    component.id,
                )
                continue
            entries[key] = component.id
        return cls(entries)

    def __getitem__(self, key: ComponentKey) -> int:
        return self._entries[key]

    def __iter__(self) -> Iterator[ComponentKey]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self, component: LogicalComponent) -> Optional[int]:
        """Return the ID of the first entry matching ``component``, if any."""
        for key, component_id in self._entries.items():
            if key.matches(component):
                return component_id
        return None


def build_cache(components: Iterable[RemoteComponent]) -> ComponentCache:
    """Build a ``ComponentCache`` from a snapshot of remote components."""
    return ComponentCache.build(components)


def resolve(cache: ComponentCache, component: LogicalComponent) -> Optional[int]:
    """Resolve ``component`` against ``cache``; ``None`` when not found."""
    return cache.resolve(component)
