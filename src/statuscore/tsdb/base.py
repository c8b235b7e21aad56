"""
TSDB-facing types shared by the Graphite client and the health evaluator.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from statuscore.timeouts import DEFAULT_MAX_DATA_POINTS


class TimeRange(BaseModel):
    """Query window; values are RFC3339 or Graphite relative time (``-5min``)."""

    model_config = ConfigDict(frozen=True)

    start: str
    end: str


class MetricSeries(BaseModel):
    """One returned series: ``[(value | None, unix timestamp), ...]``."""

    target: str
    datapoints: list[tuple[Optional[float], int]] = Field(default_factory=list)


class MetricSource(Protocol):
    """Anything that can run a batch of named queries over a time range."""

    async def fetch(
        self,
        targets: Mapping[str, str],
        time_range: TimeRange,
        max_data_points: int = DEFAULT_MAX_DATA_POINTS,
    ) -> list[MetricSeries]:
        """Return one series per target, named by the target key."""
        ...
