"""
StatusCore CLI - API server, configuration check and health queries.

Usage::

    statuscore serve --config config.yaml --port 3000
    statuscore check-config --config config.yaml
    statuscore health --service compute --environment production
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import click

from statuscore.errors import StatusCoreError
from statuscore.health.evaluator import HealthEvaluator
from statuscore.tsdb.base import TimeRange
from statuscore.tsdb.graphite import GraphiteClient

from ._common import config_option, load_definitions, setup_logging


@click.command()
@config_option
@click.option("--host", default=None, help="Bind address (default: server.address)")
@click.option("--port", type=int, default=None, help="Bind port (default: server.port)")
def serve(config_path: Optional[str], host: Optional[str], port: Optional[int]):
    """Run the health API (with Grafana-compatible Graphite routes)."""
    from statuscore.api.server import run_server

    setup_logging()
    definitions = load_definitions(config_path)
    datasource = definitions.config.datasource
    evaluator = HealthEvaluator(
        definitions, GraphiteClient(datasource.url, timeout=datasource.timeout)
    )
    run_server(definitions, evaluator, host=host, port=port)


@click.command()
@config_option
def check_config(config_path: Optional[str]):
    """Load and validate monitoring definitions."""
    definitions = load_definitions(config_path)

    click.echo("✓ Configuration is valid")
    click.echo(f"  Environments: {', '.join(definitions.environments) or '-'}")
    click.echo(f"  Flag metrics: {len(definitions.flags)}")
    click.echo(f"  Services:     {', '.join(definitions.services()) or '-'}")
    missing = [
        key for key, item in definitions.health.items() if not item.component_name
    ]
    if missing:
        click.echo(f"  Not reported (no component_name): {', '.join(missing)}")
    if definitions.config.status_dashboard is None:
        click.echo("  Status dashboard: not configured")


@click.command()
@config_option
@click.option("--service", "-s", required=True, help="Service (health definition key)")
@click.option("--environment", "-e", required=True, help="Environment name")
@click.option("--from", "from_", default=None, help="Range start (default: health_query.query_from)")
@click.option("--to", default=None, help="Range end (default: health_query.query_to)")
def health(
    config_path: Optional[str],
    service: str,
    environment: str,
    from_: Optional[str],
    to: Optional[str],
):
    """Evaluate one service in one environment and print it as JSON."""
    definitions = load_definitions(config_path)
    query = definitions.config.health_query
    time_range = TimeRange(start=from_ or query.query_from, end=to or query.query_to)

    async def _query():
        datasource = definitions.config.datasource
        async with GraphiteClient(datasource.url, timeout=datasource.timeout) as graphite:
            evaluator = HealthEvaluator(definitions, graphite)
            return await evaluator.get_service_health(
                service, environment, time_range, query.max_data_points
            )

    try:
        result = asyncio.run(_query())
    except StatusCoreError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
