"""Aggregator service: the core behind the connection layer."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from typing import Any

from pyagg.clock import LogicalClock
from pyagg.config import AggregatorConfig
from pyagg.exceptions import AggError, AggProtocolError, AggStorageError
from pyagg.models.outcome import Outcome, QueryResult, SubmissionResult
from pyagg.models.reports import RecoveryReport, SweepReport
from pyagg.protocol.query import QueryProtocol
from pyagg.protocol.submission import SubmissionProtocol
from pyagg.store.persistence import MainStoreFile
from pyagg.store.recovery import StagingRecovery
from pyagg.store.records import RecordStore
from pyagg.store.staging import StagingArea
from pyagg.sweeper import LivenessSweeper

_logger = logging.getLogger(__name__)


def parse_clock_value(raw: Any) -> int:
    """Convert a received clock header value to an int.

    A missing or blank value counts as ``0`` (a sender that has seen
    nothing yet).

    Raises
    ------
    AggProtocolError
        If the value is not a non-negative integer.
    """
    if raw is None:
        return 0
    if isinstance(raw, bool):
        raise AggProtocolError(f"Invalid logical clock value: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return 0
        try:
            value = int(text)
        except ValueError as exc:
            raise AggProtocolError(f"Invalid logical clock value: {text[:32]!r}") from exc
    if value < 0:
        raise AggProtocolError(f"Logical clock value must be non-negative, got {value}")
    return value


class AggregatorService:
    """Owns the clock, the record store and the on-disk state.

    Usage::

        async with AggregatorService(config) as service:
            result = await service.submit(3, body)

    Requests are refused until :meth:`start` has finished recovery.
    """

    def __init__(
        self,
        config: AggregatorConfig,
        *,
        clock: LogicalClock | None = None,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._clock = clock or LogicalClock()
        self._store = RecordStore(
            max_records=config.max_records,
            retention=config.retention,
            clock=wall_clock,
        )
        self._staging: StagingArea | None = None
        self._main_file: MainStoreFile | None = None
        if config.persist:
            self._staging = StagingArea(config.staging_dir)
            self._main_file = MainStoreFile(config.main_store_path)

        self._submission = SubmissionProtocol(
            self._clock,
            self._store,
            staging=self._staging,
            main_file=self._main_file,
        )
        self._query = QueryProtocol(self._clock, self._store)
        self._sweeper = LivenessSweeper(
            self._store,
            staging=self._staging,
            expiry_seconds=config.expiry_seconds,
            interval=config.sweep_interval,
            on_evict=self._save_after_eviction,
        )
        self._wall_clock = wall_clock
        self._started = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AggregatorService:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self, *, run_sweeper: bool = True) -> RecoveryReport:
        """Recover on-disk state, then begin accepting requests."""
        if self._started:
            raise AggError("Service already started")
        report = RecoveryReport()
        if self._staging is not None:
            await asyncio.to_thread(self._staging.ensure)
            recovery = StagingRecovery(
                self._store,
                self._staging,
                main_file=self._main_file,
                expiry_seconds=self._config.expiry_seconds,
                clock=self._wall_clock,
            )
            report = await asyncio.to_thread(recovery.run)
        if run_sweeper:
            self._sweeper.start()
        self._started = True
        _logger.info("Aggregator ready with %d records (clock=%d)", len(self._store), self._clock.time)
        return report

    async def stop(self) -> None:
        await self._sweeper.stop()
        self._started = False

    @property
    def clock(self) -> LogicalClock:
        return self._clock

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def sweeper(self) -> LivenessSweeper:
        return self._sweeper

    @property
    def is_started(self) -> bool:
        return self._started

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def submit(self, received_clock: int, body: str | bytes) -> SubmissionResult:
        self._require_started()
        return await self._submission.submit(received_clock, body)

    def query(self, received_clock: int, source_id: str | None = None) -> QueryResult:
        self._require_started()
        return self._query.query(received_clock, source_id)

    async def handle(
        self,
        method: str,
        raw_clock: Any,
        *,
        body: str | bytes = b"",
        source_id: str | None = None,
    ) -> SubmissionResult | QueryResult:
        """Classify a request as PUT or GET and run the matching protocol.

        An unusable clock value or any other method yields ``BAD_REQUEST``.
        """
        try:
            received = parse_clock_value(raw_clock)
        except AggProtocolError as exc:
            _logger.debug("Bad request: %s", exc)
            return SubmissionResult(outcome=Outcome.BAD_REQUEST, clock=self._clock.tick(), detail=str(exc))

        verb = method.upper()
        if verb == "PUT":
            return await self.submit(received, body)
        if verb == "GET":
            if source_id is not None:
                source_id = source_id.strip() or None
            return self.query(received, source_id)

        return self.reject(received, f"Unsupported method {verb}")

    def reject(self, raw_clock: Any, detail: str) -> SubmissionResult:
        """Answer a request the core does not serve with ``BAD_REQUEST``."""
        with contextlib.suppress(AggProtocolError):
            self._clock.observe(parse_clock_value(raw_clock))
        _logger.debug("Bad request: %s", detail)
        return SubmissionResult(outcome=Outcome.BAD_REQUEST, clock=self._clock.tick(), detail=detail)

    def _require_started(self) -> None:
        if not self._started:
            raise AggError("Service not started. Use 'async with AggregatorService(...) as service:'")

    def _save_after_eviction(self, _report: SweepReport) -> None:
        if self._main_file is None:
            return
        try:
            self._main_file.save(self._store)
        except AggStorageError:
            _logger.warning("Main store file write failed after eviction", exc_info=True)
