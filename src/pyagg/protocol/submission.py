"""PUT: admit a content source's reading.

Sequence per submission: observe the sender's clock, parse, stage,
merge (which also refreshes the source's activity), save the main store
file, delete the artifact, tick for the response. Parse and staging
failures become outcome codes here and are never raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging

from pyagg._redact import summarize_for_log
from pyagg.clock import LogicalClock
from pyagg.codec import parse_reading
from pyagg.exceptions import AggStorageError, ReadingParseError
from pyagg.models.outcome import Outcome, SubmissionResult
from pyagg.store.persistence import MainStoreFile
from pyagg.store.records import RecordStore
from pyagg.store.staging import StagingArea, StagingArtifact

_logger = logging.getLogger(__name__)


class SubmissionProtocol:
    """Validate, stage and merge submissions.

    ``staging`` and ``main_file`` are optional so the protocol can run
    purely in memory; with them, disk I/O is pushed to worker threads and
    the event loop only ever holds the store and clock locks.
    """

    def __init__(
        self,
        clock: LogicalClock,
        store: RecordStore,
        *,
        staging: StagingArea | None = None,
        main_file: MainStoreFile | None = None,
    ) -> None:
        self._clock = clock
        self._store = store
        self._staging = staging
        self._main_file = main_file

    async def submit(self, received_clock: int, body: str | bytes) -> SubmissionResult:
        self._clock.observe(received_clock)

        if not body or not body.strip():
            return SubmissionResult(outcome=Outcome.NO_CONTENT, clock=self._clock.tick(), detail="No content")

        try:
            reading = parse_reading(body)
        except ReadingParseError as exc:
            _logger.debug("Rejected malformed reading: %s", exc)
            return SubmissionResult(outcome=Outcome.MALFORMED, clock=self._clock.tick(), detail=str(exc))

        artifact: StagingArtifact | None = None
        if self._staging is not None:
            try:
                artifact = await asyncio.to_thread(self._staging.stage, reading)
            except AggStorageError as exc:
                _logger.warning("Staging failed for source=%s: %s", reading.id, exc)
                return SubmissionResult(
                    outcome=Outcome.INTERNAL_ERROR,
                    clock=self._clock.tick(),
                    source_id=reading.id,
                    detail="Staging failed",
                )

        outcome = self._store.upsert(reading)

        # The merge is committed once it is in the store. A failed main-file
        # write keeps the artifact as the durable copy for recovery.
        if await self._save():
            await self._discard(artifact)
        clock = self._clock.tick()

        _logger.debug("PUT %s source=%s clock=%d reading=%s", outcome, reading.id, clock, summarize_for_log(reading))
        return SubmissionResult(outcome=outcome, clock=clock, source_id=reading.id)

    async def _save(self) -> bool:
        if self._main_file is None:
            return True
        try:
            await asyncio.to_thread(self._main_file.save, self._store)
        except AggStorageError as exc:
            _logger.warning("Main store file write failed: %s", exc)
            return False
        return True

    async def _discard(self, artifact: StagingArtifact | None) -> None:
        if artifact is None or self._staging is None:
            return
        try:
            await asyncio.to_thread(self._staging.discard, artifact)
        except AggStorageError as exc:
            _logger.warning("Could not delete staging artifact %s: %s", artifact.name, exc)
