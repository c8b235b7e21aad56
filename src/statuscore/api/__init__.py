"""HTTP API: service health and Grafana-compatible Graphite routes."""

from statuscore.api.server import create_app, run_server

__all__ = ["create_app", "run_server"]
