"""HTTP connection layer.

A thin aiohttp application in front of :class:`AggregatorService`. It reads
the method, the ``Lamport-Clock`` header, the optional source-id query key
and the body, hands them to the service, and renders the outcome. It never
inspects reading contents itself.
"""

from __future__ import annotations

import logging

from aiohttp import web

from pyagg._constants import CLOCK_HEADER, OUTCOME_HEADER, SOURCE_ID_QUERY_KEYS, WEATHER_ENDPOINT
from pyagg.codec import serialize_reading
from pyagg.config import AggregatorConfig
from pyagg.models.outcome import Outcome, QueryResult, SubmissionResult
from pyagg.service import AggregatorService

_logger = logging.getLogger(__name__)

SERVICE_KEY: web.AppKey[AggregatorService] = web.AppKey("service", AggregatorService)


def _source_id_from_query(request: web.Request) -> str | None:
    for key in SOURCE_ID_QUERY_KEYS:
        value = request.query.get(key)
        if value is not None:
            return value
    return None


def render_result(result: SubmissionResult | QueryResult) -> web.Response:
    """Map a protocol result to an HTTP response."""
    headers = {
        CLOCK_HEADER: str(result.clock),
        OUTCOME_HEADER: result.outcome.value,
    }
    status = result.outcome.http_status

    if isinstance(result, QueryResult) and result.reading is not None:
        return web.Response(
            status=status,
            text=serialize_reading(result.reading),
            content_type="application/json",
            headers=headers,
        )
    if result.outcome is Outcome.NO_CONTENT:
        return web.Response(status=status, headers=headers)
    return web.Response(status=status, text=result.detail or result.outcome.value, headers=headers)


async def _handle_weather(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    body = await request.read() if request.method == "PUT" else b""
    result = await service.handle(
        request.method,
        request.headers.get(CLOCK_HEADER),
        body=body,
        source_id=_source_id_from_query(request),
    )
    _logger.debug("%s %s -> %s", request.method, request.path_qs, result.outcome)
    return render_result(result)


async def _handle_unknown(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    result = service.reject(request.headers.get(CLOCK_HEADER), f"Unknown endpoint {request.path}")
    return render_result(result)


def create_app(service: AggregatorService, *, manage_service: bool = True) -> web.Application:
    """Build the aiohttp application.

    With ``manage_service`` the service is started (recovery included)
    when the app starts and stopped on cleanup.
    """
    app = web.Application()
    app[SERVICE_KEY] = service
    app.router.add_route("*", WEATHER_ENDPOINT, _handle_weather)
    app.router.add_route("*", "/{tail:.*}", _handle_unknown)

    if manage_service:

        async def _start(_app: web.Application) -> None:
            await service.start()

        async def _stop(_app: web.Application) -> None:
            await service.stop()

        app.on_startup.append(_start)
        app.on_cleanup.append(_stop)
    return app


def run(config: AggregatorConfig) -> None:
    """Run the aggregator until interrupted."""
    service = AggregatorService(config)
    _logger.info("Starting aggregator on %s:%d (data dir %s)", config.host, config.port, config.data_dir)
    web.run_app(create_app(service), host=config.host, port=config.port, print=None)
