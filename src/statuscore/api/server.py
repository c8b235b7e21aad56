"""
FastAPI application exposing evaluated service health.

Routes:

- ``GET /api/v1/``, ``GET /api/v1/info``
- ``GET /api/v1/health?service=&environment=&from=&to=&max_data_points=``
- Graphite-compatible routes so Grafana can browse and chart flags and
  health directly: ``/functions``, ``/metrics/find``, ``/render``,
  ``/tags/autoComplete/tags``.

Graphite targets served by ``/render`` (any number of ``target`` parameters,
rendered in request order):

- ``flag.<environment>.<service>.<metric>``: flag values as 0/1; a
  trailing ``*`` on the metric matches every flag with that prefix.
- ``health.<environment>.<service>``: severity series.

Example:
    from statuscore.api.server import create_app

    app = create_app(definitions, evaluator)
    uvicorn.run(app, host="0.0.0.0", port=3000)
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import parse_qs

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from statuscore import __version__
from statuscore.definitions.registry import MonitorDefinitions
from statuscore.errors import (
    EnvironmentNotSupportedError,
    HealthIndeterminateError,
    ServiceNotSupportedError,
    StatusCoreError,
    TransportError,
)
from statuscore.health.evaluator import HealthEvaluator
from statuscore.timeouts import DEFAULT_MAX_DATA_POINTS
from statuscore.tsdb.base import TimeRange

logger = logging.getLogger(__name__)


def _find_node(name: str, leaf: bool) -> dict[str, Any]:
    return {
        "allowChildren": 0 if leaf else 1,
        "expandable": 0 if leaf else 1,
        "leaf": 1 if leaf else 0,
        "id": name,
        "text": name,
    }


def find_metrics(definitions: MonitorDefinitions, query: str) -> list[dict[str, Any]]:
    """Browse the ``flag``/``health`` namespace one level at a time."""
    parts = query.split(".")
    nodes: list[dict[str, Any]] = []

    if len(parts) == 1 and parts[0] == "*":
        nodes = [_find_node("flag", False), _find_node("health", False)]
    elif len(parts) == 2 and parts[1] == "*":
        nodes = [_find_node(env, False) for env in definitions.environments]
    elif parts[0] == "flag" and len(parts) == 3:
        nodes = [_find_node(svc, False) for svc in sorted(definitions.flags.services())]
    elif parts[0] == "flag" and len(parts) == 4:
        if parts[3] == "*":
            names = [n for n in definitions.flags.names() if n.startswith(f"{parts[2]}.")]
        else:
            wanted = f"{parts[2]}.{parts[3]}"
            names = [n for n in definitions.flags.names() if n == wanted]
        nodes = [_find_node(name, True) for name in names]
    elif parts[0] == "health" and len(parts) == 3:
        nodes = [_find_node(svc, True) for svc in definitions.services()]

    return sorted(nodes, key=lambda node: node["text"])


def create_app(definitions: MonitorDefinitions, evaluator: HealthEvaluator) -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title="StatusCore",
        description="Service health evaluated from TSDB metrics",
        version=__version__,
    )
    app.state.definitions = definitions
    app.state.evaluator = evaluator
    defaults = definitions.config.health_query

    @app.exception_handler(ServiceNotSupportedError)
    @app.exception_handler(EnvironmentNotSupportedError)
    async def not_supported(request: Request, exc: StatusCoreError):
        return JSONResponse(status_code=409, content={"message": str(exc)})

    @app.exception_handler(HealthIndeterminateError)
    @app.exception_handler(TransportError)
    async def evaluation_failed(request: Request, exc: StatusCoreError):
        logger.error("Health evaluation failed: %s", exc)
        return JSONResponse(status_code=500, content={"message": str(exc)})

    # -----------------------------------------------------------------------
    # API v1
    # -----------------------------------------------------------------------

    @app.get("/api/v1/")
    async def v1_root():
        return {"name": "v1"}

    @app.get("/api/v1/info", response_class=PlainTextResponse)
    async def v1_info():
        return "V1 API of StatusCore\n"

    @app.get("/api/v1/health")
    async def v1_health(
        service: str,
        environment: str,
        from_: Optional[str] = Query(None, alias="from"),
        to: Optional[str] = None,
        max_data_points: int = DEFAULT_MAX_DATA_POINTS,
    ):
        time_range = TimeRange(
            start=from_ or defaults.query_from,
            end=to or defaults.query_to,
        )
        health = await evaluator.get_service_health(
            service, environment, time_range, max_data_points
        )
        return health.model_dump(mode="json")

    # -----------------------------------------------------------------------
    # Graphite compatibility
    # -----------------------------------------------------------------------

    @app.get("/functions")
    async def functions():
        return {}

    @app.get("/tags/autoComplete/tags")
    async def tags():
        return []

    @app.get("/metrics/find")
    async def metrics_find(query: str):
        return find_metrics(definitions, query)

    @app.api_route("/render", methods=["GET", "POST"])
    async def render(request: Request):
        params: dict[str, Any] = dict(request.query_params)
        targets = request.query_params.getlist("target")
        if request.method == "POST":
            body_targets, body_params = await _read_body(request)
            targets.extend(body_targets)
            params.update(body_params)
        targets = [target for target in targets if target]

        if not targets:
            return JSONResponse(status_code=400, content={"message": "target is required"})
        try:
            max_data_points = int(params.get("maxDataPoints") or defaults.max_data_points)
        except (TypeError, ValueError):
            return JSONResponse(
                status_code=400, content={"message": "maxDataPoints must be an integer"}
            )

        time_range = TimeRange(
            start=params.get("from") or defaults.query_from,
            end=params.get("until") or defaults.query_to,
        )

        rendered: list[dict[str, Any]] = []
        for target in targets:
            parts = target.split(".")
            if parts[0] == "flag" and len(parts) == 4:
                result = await _render_flags(
                    parts[1], f"{parts[2]}.{parts[3]}", time_range, max_data_points
                )
                if isinstance(result, dict):
                    return result
                rendered.extend(result)
            elif parts[0] == "health" and len(parts) == 3:
                rendered.extend(
                    await _render_health(parts[2], parts[1], time_range, max_data_points)
                )
        return rendered

    async def _render_flags(
        environment: str,
        pattern: str,
        time_range: TimeRange,
        max_data_points: int,
    ):
        registry = definitions.flags
        if pattern.endswith("*"):
            names = [n for n in registry.names() if n.startswith(pattern[:-1])]
        else:
            names = [n for n in registry.names() if n == pattern]
        metrics = {}
        for name in names:
            metric = registry.get(name, environment)
            if metric is not None:
                metrics[name] = metric

        try:
            series = await evaluator.source.fetch(
                {name: metric.query for name, metric in metrics.items()},
                time_range,
                max_data_points,
            )
        except TransportError as exc:
            logger.error("Error reading data from TSDB: %s", exc)
            return {"message": "Error reading data from TSDB"}

        rendered = []
        for item in series:
            metric = metrics.get(item.target)
            if metric is None:
                logger.warning("TSDB response contains unknown target: %s", item.target)
                continue
            rendered.append({
                "target": item.target,
                "datapoints": [
                    [1.0 if metric.evaluate(value) else 0.0, ts]
                    for value, ts in item.datapoints
                ],
            })
        return rendered

    async def _render_health(
        service: str,
        environment: str,
        time_range: TimeRange,
        max_data_points: int,
    ):
        try:
            health = await evaluator.get_service_health(
                service, environment, time_range, max_data_points
            )
        except StatusCoreError as exc:
            logger.debug("Cannot render health of %s in %s: %s", service, environment, exc)
            return []
        return [{
            "target": service,
            "datapoints": [[float(p.severity), p.timestamp] for p in health.metrics],
        }]

    return app


async def _read_body(request: Request) -> tuple[list[str], dict[str, Any]]:
    """Render targets and the remaining parameters from a JSON or form body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        body = await request.json()
        if not isinstance(body, dict):
            return [], {}
        params = dict(body)
        target = params.pop("target", [])
        if isinstance(target, list):
            return [str(item) for item in target], params
        return [str(target)], params
    if content_type.startswith("application/x-www-form-urlencoded"):
        raw = (await request.body()).decode()
        fields = parse_qs(raw)
        targets = fields.pop("target", [])
        return targets, {key: values[-1] for key, values in fields.items()}
    return [], {}


def run_server(
    definitions: MonitorDefinitions,
    evaluator: HealthEvaluator,
    host: Optional[str] = None,
    port: Optional[int] = None,
    **kwargs,
) -> None:
    """Serve the API with uvicorn (blocking)."""
    import uvicorn

    server = definitions.config.server
    host = host or server.address
    port = port or server.port
    logger.info("Starting StatusCore API on %s:%d", host, port)
    uvicorn.run(create_app(definitions, evaluator), host=host, port=port, **kwargs)
