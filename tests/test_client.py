from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pyagg._constants import CLOCK_HEADER, OUTCOME_HEADER, WEATHER_ENDPOINT
from pyagg.client import AggregatorClient
from pyagg.config import AggregatorConfig, ClientConfig
from pyagg.exceptions import AggError, AggTransportError
from pyagg.models.outcome import Outcome
from pyagg.server import create_app
from pyagg.service import AggregatorService

if TYPE_CHECKING:
    from conftest import FakeWallClock


def _client_config(server: TestServer, **overrides: object) -> ClientConfig:
    return ClientConfig(base_url=str(server.make_url("/")), retry_delay=0, **overrides)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_put_then_get_round_trip(tmp_path: Path, wall_clock: FakeWallClock) -> None:
    service = AggregatorService(AggregatorConfig(data_dir=tmp_path), wall_clock=wall_clock)
    async with TestServer(create_app(service)) as server:
        async with AggregatorClient(_client_config(server)) as client:
            created = await client.put_reading({"id": "IDS60901", "air_temp": 13.3})
            found = await client.get_reading("IDS60901")
            latest = await client.get_reading()
            missing = await client.get_reading("nobody")

    assert created.outcome is Outcome.CREATED
    assert created.source_id == "IDS60901"
    assert found.outcome is Outcome.FOUND
    assert found.reading is not None and found.reading["air_temp"] == "13.3"
    assert found.clock > created.clock
    assert latest.reading is not None and latest.reading.id == "IDS60901"
    assert missing.outcome is Outcome.NOT_FOUND
    # Every response clock was observed.
    assert client.clock.time == missing.clock


@pytest.mark.asyncio
async def test_internal_errors_are_retried() -> None:
    calls = 0

    async def _failing(request: web.Request) -> web.Response:
        nonlocal calls
        calls += 1
        return web.Response(
            status=500,
            text="Main store file write failed",
            headers={CLOCK_HEADER: "7", OUTCOME_HEADER: "internal_error"},
        )

    app = web.Application()
    app.router.add_route("*", WEATHER_ENDPOINT, _failing)
    async with TestServer(app) as server:
        async with AggregatorClient(_client_config(server, retries=3)) as client:
            result = await client.put_reading({"id": "S1"})

    assert calls == 3
    assert result.outcome is Outcome.INTERNAL_ERROR
    assert result.detail == "Main store file write failed"


@pytest.mark.asyncio
async def test_malformed_is_not_retried() -> None:
    calls = 0

    async def _malformed(request: web.Request) -> web.Response:
        nonlocal calls
        calls += 1
        return web.Response(status=500, headers={CLOCK_HEADER: "1", OUTCOME_HEADER: "malformed"})

    app = web.Application()
    app.router.add_route("*", WEATHER_ENDPOINT, _malformed)
    async with TestServer(app) as server:
        async with AggregatorClient(_client_config(server, retries=3)) as client:
            result = await client.put_reading({"id": "S1"})

    assert calls == 1
    assert result.outcome is Outcome.MALFORMED


@pytest.mark.asyncio
async def test_status_used_when_outcome_header_missing() -> None:
    async def _plain(request: web.Request) -> web.Response:
        return web.Response(status=201)

    app = web.Application()
    app.router.add_route("*", WEATHER_ENDPOINT, _plain)
    async with TestServer(app) as server:
        async with AggregatorClient(_client_config(server)) as client:
            result = await client.put_reading({"id": "S1"})

    assert result.outcome is Outcome.CREATED
    # No clock header: the client still advances its own clock.
    assert client.clock.time == 2


@pytest.mark.asyncio
async def test_connection_failure_raises_after_retries() -> None:
    config = ClientConfig(base_url="http://127.0.0.1:1", retries=2, retry_delay=0, timeout=2.0)
    async with AggregatorClient(config) as client:
        with pytest.raises(AggTransportError):
            await client.get_reading()

    assert client.clock.time == 2


@pytest.mark.asyncio
async def test_client_requires_context_manager() -> None:
    client = AggregatorClient()
    with pytest.raises(AggError):
        await client.get_reading()
