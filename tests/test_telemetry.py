"""Tests for OTel span event emission helpers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from statuscore.telemetry import (
    emit_component_missing,
    emit_health_evaluated,
    emit_incident_created,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_span():
    """Create a mock OTel span that is recording."""
    span = MagicMock()
    span.is_recording.return_value = True
    return span


@pytest.fixture
def mock_otel(mock_span):
    """Patch OTel to return our mock span."""
    with patch("statuscore.telemetry.otel_trace") as mock_trace:
        mock_trace.get_current_span.return_value = mock_span
        yield mock_span


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestEmitHealthEvaluated:
    def test_emits_event(self, mock_otel):
        emit_health_evaluated("compute", "production", 2, ("compute.api-down",))

        call_args = mock_otel.add_event.call_args
        assert call_args.kwargs["name"] == "statuscore.health.evaluated"
        attrs = call_args.kwargs["attributes"]
        assert attrs["statuscore.service"] == "compute"
        assert attrs["statuscore.health.severity"] == 2
        assert attrs["statuscore.health.triggered_flags"] == ["compute.api-down"]


class TestEmitIncidentCreated:
    def test_emits_event(self, mock_otel):
        emit_incident_created("compute", "production", 101, 2)

        attrs = mock_otel.add_event.call_args.kwargs["attributes"]
        assert attrs["statuscore.component.id"] == 101
        assert attrs["statuscore.incident.impact"] == 2


class TestEmitComponentMissing:
    def test_emits_event(self, mock_otel):
        emit_component_missing("storage", "production", "Storage")

        call_args = mock_otel.add_event.call_args
        assert call_args.kwargs["name"] == "statuscore.component.missing"
        assert call_args.kwargs["attributes"]["statuscore.component.name"] == "Storage"


class TestNotRecording:
    def test_no_event_when_span_not_recording(self, mock_otel):
        mock_otel.is_recording.return_value = False
        emit_incident_created("compute", "production", 101, 2)
        mock_otel.add_event.assert_not_called()

    def test_no_provider_is_noop(self):
        emit_health_evaluated("compute", "production", 0, [])
