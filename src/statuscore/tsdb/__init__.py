"""Time-series database access."""

from statuscore.tsdb.base import MetricSeries, MetricSource, TimeRange
from statuscore.tsdb.graphite import GraphiteClient

__all__ = ["MetricSeries", "MetricSource", "TimeRange", "GraphiteClient"]
