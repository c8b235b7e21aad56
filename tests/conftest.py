"""
Pytest configuration and fixtures for StatusCore tests.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from io import StringIO
from typing import Any, Dict, Generator, List, Mapping, Optional

import pytest
import yaml

from statuscore.config import reset_config
from statuscore.definitions.loader import ConfigLoader
from statuscore.definitions.registry import MonitorDefinitions
from statuscore.tsdb.base import MetricSeries, TimeRange


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_statuscore_env() -> Generator[None, None, None]:
    """Remove STATUSCORE_* variables and the cached process config."""
    original = {k: v for k, v in os.environ.items() if k.startswith("STATUSCORE_")}
    for key in original:
        os.environ.pop(key)
    reset_config()

    yield

    for key in [k for k in os.environ if k.startswith("STATUSCORE_")]:
        os.environ.pop(key)
    os.environ.update(original)
    reset_config()


# ============================================================================
# Definition Fixtures
# ============================================================================


SAMPLE_CONFIG: Dict[str, Any] = {
    "datasource": {"url": "https://graphite.example.com"},
    "server": {"port": 3005},
    "metric_templates": {
        "api_slow": {
            "query": "stats.timers.api.$environment.$service.mean",
            "op": "gt",
            "threshold": 500,
        },
        "api_down": {
            "query": "stats.counters.api.$environment.$service.failed_count",
            "op": "gt",
            "threshold": 5,
        },
    },
    "environments": [
        {"name": "production", "attributes": {"region": "EU-DE"}},
        {"name": "staging", "attributes": {"region": "EU-NL"}},
    ],
    "flag_metrics": [
        {
            "name": "api-slow",
            "service": "compute",
            "template": {"name": "api_slow"},
            "environments": [
                {"name": "production", "threshold": 750},
                {"name": "staging"},
            ],
        },
        {
            "name": "api-down",
            "service": "compute",
            "template": {"name": "api_down"},
            "environments": [{"name": "production"}, {"name": "staging"}],
        },
        {
            "name": "api-slow",
            "service": "storage",
            "template": {"name": "api_slow"},
            "environments": [{"name": "production"}],
        },
    ],
    "health_metrics": {
        "compute": {
            "service": "compute",
            "component_name": "Compute",
            "category": "compute",
            "metrics": ["compute.api-slow", "compute.api-down"],
            "expressions": [
                {"expression": "compute.api-slow", "weight": 1},
                {"expression": "compute.api-down", "weight": 2},
            ],
        },
        "storage": {
            "service": "storage",
            "component_name": "Storage",
            "category": "storage",
            "metrics": ["storage.api-slow"],
            "expressions": [{"expression": "storage.api-slow", "weight": 1}],
        },
    },
    "status_dashboard": {
        "url": "https://status.example.com",
        "secret": "sd-secret",
    },
}


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Deep copy of the sample monitoring definitions (safe to mutate)."""
    return copy.deepcopy(SAMPLE_CONFIG)


@pytest.fixture
def sample_yaml(sample_config: Dict[str, Any]) -> str:
    return yaml.safe_dump(sample_config, sort_keys=False)


@pytest.fixture
def config_file(tmp_path, sample_yaml: str):
    """Sample definitions written to ``tmp_path/config.yaml``."""
    path = tmp_path / "config.yaml"
    path.write_text(sample_yaml)
    return path


@pytest.fixture
def definitions(sample_config: Dict[str, Any]) -> MonitorDefinitions:
    return ConfigLoader.compile(sample_config)


# ============================================================================
# TSDB Fixtures
# ============================================================================


class FakeMetricSource:
    """In-memory ``MetricSource`` returning canned series.

    ``datapoints`` is keyed by query, or by target name for data that
    should be returned in every environment.
    """

    def __init__(self, datapoints: Optional[Mapping[str, List[tuple]]] = None):
        self.datapoints = dict(datapoints or {})
        self.extra_series: List[MetricSeries] = []
        self.calls: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    async def fetch(self, targets, time_range: TimeRange, max_data_points: int = 100):
        self.calls.append({
            "targets": dict(targets),
            "time_range": time_range,
            "max_data_points": max_data_points,
        })
        if self.error is not None:
            raise self.error
        series = []
        for name, query in targets.items():
            points = self.datapoints.get(query, self.datapoints.get(name))
            if points is not None:
                series.append(MetricSeries(target=name, datapoints=points))
        return series + self.extra_series


@pytest.fixture
def metric_source() -> FakeMetricSource:
    return FakeMetricSource()


# ============================================================================
# Logging Fixtures
# ============================================================================


class CapturedEvents:
    """Structured reporter events written to an in-memory stream."""

    def __init__(self, stream: StringIO):
        self.stream = stream

    def all(self) -> List[Dict[str, Any]]:
        lines = self.stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    def named(self, event: str) -> List[Dict[str, Any]]:
        return [entry for entry in self.all() if entry["event"] == event]

    def last(self) -> Dict[str, Any]:
        entries = self.all()
        return entries[-1] if entries else {}


@pytest.fixture
def captured_events() -> Generator[CapturedEvents, None, None]:
    """Capture JSON lines emitted on the ``statuscore.events`` logger."""
    events_logger = logging.getLogger("statuscore.events")
    original_handlers = list(events_logger.handlers)
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    events_logger.handlers = [handler]

    yield CapturedEvents(stream)

    events_logger.handlers = original_handlers
