"""
StatusCore CLI - reporting workflow.

Usage::

    statuscore report --config config.yaml
    statuscore report --config config.yaml --health-url http://statuscore-api:3000
"""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

import click

from statuscore.config import get_config
from statuscore.dashboard.auth import build_auth_headers
from statuscore.dashboard.client import StatusDashboardClient
from statuscore.definitions.registry import MonitorDefinitions
from statuscore.errors import StartupFailedError
from statuscore.health.evaluator import HealthEvaluator
from statuscore.logger import ReporterLogger
from statuscore.reporter.sources import HttpHealthSource, LocalHealthSource
from statuscore.reporter.workflow import ReportingWorkflow
from statuscore.tsdb.graphite import GraphiteClient

from ._common import config_option, load_definitions, setup_logging


async def run_reporter(definitions: MonitorDefinitions, health_url: Optional[str]) -> None:
    """Run the workflow until SIGINT/SIGTERM."""
    settings = definitions.config.status_dashboard
    datasource = definitions.config.datasource

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    if health_url:
        source = HttpHealthSource(health_url, timeout=settings.timeout)
        closer = source.aclose
    else:
        graphite = GraphiteClient(datasource.url, timeout=datasource.timeout)
        source = LocalHealthSource(HealthEvaluator(definitions, graphite))
        closer = graphite.aclose

    headers = build_auth_headers(
        settings.secret, settings.jwt_preferred_username, settings.jwt_group
    )
    try:
        async with StatusDashboardClient(
            settings.url, headers=headers, timeout=settings.timeout
        ) as dashboard:
            workflow = ReportingWorkflow(
                definitions,
                source,
                dashboard,
                events=ReporterLogger(service_name=f"{get_config().service_name}-reporter"),
            )
            await workflow.run(stop)
    finally:
        await closer()


@click.command()
@config_option
@click.option(
    "--health-url",
    envvar="STATUSCORE_HEALTH_URL",
    default=None,
    help="Query a running StatusCore API instead of evaluating locally",
)
def report(config_path: Optional[str], health_url: Optional[str]):
    """Report degraded services to the status dashboard.

    Loads the dashboard component cache (retrying on failure), then polls
    every (environment, service) pair each interval and submits an
    incident for every pair with a non-zero severity.  Stops on Ctrl+C.
    """
    setup_logging()
    definitions = load_definitions(config_path)
    if definitions.config.status_dashboard is None:
        raise click.ClickException("status_dashboard is not configured")

    try:
        asyncio.run(run_reporter(definitions, health_url))
    except StartupFailedError as exc:
        click.echo(f"✗ {exc}", err=True)
        raise SystemExit(1) from exc
