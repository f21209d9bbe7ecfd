"""Async client for content sources and readers of an aggregator."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import aiohttp

from pyagg._constants import CLOCK_HEADER, OUTCOME_HEADER, USER_AGENT
from pyagg.clock import LogicalClock
from pyagg.codec import parse_reading, serialize_reading
from pyagg.config import ClientConfig
from pyagg.exceptions import AggError, AggTransportError, ReadingParseError
from pyagg.models.outcome import Outcome, QueryResult, SubmissionResult
from pyagg.models.reading import Reading

_logger = logging.getLogger(__name__)

_PUT_STATUS_OUTCOMES: dict[int, Outcome] = {
    201: Outcome.CREATED,
    200: Outcome.UPDATED,
    204: Outcome.NO_CONTENT,
    400: Outcome.BAD_REQUEST,
    500: Outcome.INTERNAL_ERROR,
}
_GET_STATUS_OUTCOMES: dict[int, Outcome] = {
    200: Outcome.FOUND,
    404: Outcome.NOT_FOUND,
    400: Outcome.BAD_REQUEST,
    500: Outcome.INTERNAL_ERROR,
}


@dataclass(frozen=True, slots=True)
class _RawResponse:
    status: int
    outcome: Outcome
    clock: int
    text: str


class AggregatorClient:
    """Async client that speaks the aggregator's PUT/GET protocol.

    The client keeps its own :class:`LogicalClock`: it ticks before every
    request and observes the aggregator's clock on every response.

    Usage::

        async with AggregatorClient(ClientConfig(base_url="http://host:4567")) as client:
            await client.put_reading({"id": "IDS60901", "air_temp": "13.3"})
            latest = await client.get_reading("IDS60901")
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        clock: LogicalClock | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._external_session = session is not None
        self._http_session = session
        self._clock = clock or LogicalClock()

    async def __aenter__(self) -> AggregatorClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout),
            )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    @property
    def clock(self) -> LogicalClock:
        return self._clock

    async def put_reading(self, reading: Reading | Mapping[str, Any]) -> SubmissionResult:
        """Submit a reading. Retries on connection failures and internal errors."""
        if not isinstance(reading, Reading):
            reading = Reading.model_validate(dict(reading))
        body = serialize_reading(reading)
        raw = await self._request("PUT", data=body.encode("utf-8"), status_outcomes=_PUT_STATUS_OUTCOMES)
        return SubmissionResult(
            outcome=raw.outcome,
            clock=raw.clock,
            source_id=reading.id,
            detail="" if raw.outcome.is_success else raw.text,
        )

    async def get_reading(self, source_id: str | None = None) -> QueryResult:
        """Fetch the newest reading, optionally for one source."""
        params = {"id": source_id} if source_id else None
        raw = await self._request("GET", params=params, status_outcomes=_GET_STATUS_OUTCOMES)
        if raw.outcome is not Outcome.FOUND:
            return QueryResult(outcome=raw.outcome, clock=raw.clock, detail=raw.text)
        try:
            reading = parse_reading(raw.text)
        except ReadingParseError as exc:
            raise AggTransportError(
                f"Aggregator returned an unparseable reading: {exc}",
                status_code=raw.status,
                endpoint=self._config.endpoint,
            ) from exc
        return QueryResult(outcome=Outcome.FOUND, clock=raw.clock, reading=reading)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            raise AggError("Client not initialized. Use 'async with AggregatorClient(...) as client:'")
        return self._http_session

    def _decode_outcome(self, resp: aiohttp.ClientResponse, status_outcomes: dict[int, Outcome]) -> Outcome:
        header = resp.headers.get(OUTCOME_HEADER)
        if header is not None:
            try:
                return Outcome(header)
            except ValueError:
                _logger.debug("Ignoring unknown outcome header %r", header)
        outcome = status_outcomes.get(resp.status)
        if outcome is None:
            raise AggTransportError(
                f"Unexpected HTTP {resp.status} from {self._config.endpoint}",
                status_code=resp.status,
                endpoint=self._config.endpoint,
            )
        return outcome

    def _observe_server_clock(self, resp: aiohttp.ClientResponse) -> int:
        raw_clock = resp.headers.get(CLOCK_HEADER)
        try:
            server_clock = int(raw_clock) if raw_clock is not None else None
        except ValueError:
            server_clock = None
        if server_clock is None:
            _logger.debug("Response without a usable %s header", CLOCK_HEADER)
            return self._clock.tick()
        return self._clock.observe(server_clock)

    async def _request(
        self,
        method: str,
        *,
        status_outcomes: dict[int, Outcome],
        data: bytes | None = None,
        params: Mapping[str, str] | None = None,
    ) -> _RawResponse:
        http = self._require_session()
        url = f"{self._config.base_url.rstrip('/')}{self._config.endpoint}"
        attempts = self._config.retries

        attempt = 0
        while True:
            attempt += 1
            headers = {
                CLOCK_HEADER: str(self._clock.tick()),
                "user-agent": USER_AGENT,
            }
            if data is not None:
                headers["content-type"] = "application/json; charset=UTF-8"

            _logger.debug("%s %s attempt=%d/%d", method, url, attempt, attempts)
            try:
                async with http.request(method, url, data=data, params=params, headers=headers) as resp:
                    text = await resp.text()
                    outcome = self._decode_outcome(resp, status_outcomes)
                    clock = self._observe_server_clock(resp)
            except (aiohttp.ClientError, TimeoutError) as exc:
                if attempt >= attempts:
                    raise AggTransportError(
                        f"{method} {self._config.endpoint} failed after {attempts} attempts: {exc}",
                        endpoint=self._config.endpoint,
                    ) from exc
                _logger.debug("%s %s failed (%s); retrying in %.1fs", method, url, exc, self._config.retry_delay)
                await asyncio.sleep(self._config.retry_delay)
                continue

            if outcome is Outcome.INTERNAL_ERROR and attempt < attempts:
                _logger.debug("%s %s internal error; retrying in %.1fs", method, url, self._config.retry_delay)
                await asyncio.sleep(self._config.retry_delay)
                continue
            return _RawResponse(resp.status, outcome, clock, text)
