"""Startup recovery.

Runs once, before the aggregator accepts requests:

1. restore the main store file, dropping records past the expiry cutoff;
2. discard staged artifacts older than the cutoff;
3. replay the remaining artifacts oldest first (by modification time),
   skipping any that are not newer than the record already restored for
   the same source;
4. save the merged store, then delete every processed artifact.

Recovery never touches the logical clock: replay is not an event any
external party observed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from pyagg._constants import EXPIRY_SECONDS
from pyagg.exceptions import AggStorageError, ReadingParseError
from pyagg.models.reports import RecoveryReport
from pyagg.store.persistence import MainStoreFile
from pyagg.store.policy import is_silent
from pyagg.store.records import RecordStore
from pyagg.store.staging import StagingArea, StagingArtifact

_logger = logging.getLogger(__name__)


class StagingRecovery:
    """Rebuild a :class:`RecordStore` from disk after a restart or crash."""

    def __init__(
        self,
        store: RecordStore,
        staging: StagingArea,
        *,
        main_file: MainStoreFile | None = None,
        expiry_seconds: float = EXPIRY_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._staging = staging
        self._main_file = main_file
        self._expiry_seconds = expiry_seconds
        self._clock = clock

    def run(self) -> RecoveryReport:
        loaded, expired_records, corrupt_lines = self._restore_main_file()
        processed, replayed, expired, corrupt, superseded = self._replay_staging()

        if self._main_file is not None and (replayed or expired_records or corrupt_lines):
            try:
                self._main_file.save(self._store)
            except AggStorageError:
                # Keep the artifacts: they are still the only durable copy.
                _logger.exception("Could not save recovered store; staged artifacts kept for next start")
                processed = []

        for artifact in processed:
            self._discard(artifact)

        report = RecoveryReport(
            loaded=loaded,
            replayed=replayed,
            expired=expired + expired_records,
            corrupt=corrupt + corrupt_lines,
            superseded=superseded,
        )
        _logger.info(
            "Recovery complete loaded=%d replayed=%d expired=%d corrupt=%d superseded=%d",
            report.loaded,
            report.replayed,
            report.expired,
            report.corrupt,
            report.superseded,
        )
        return report

    def _restore_main_file(self) -> tuple[int, int, int]:
        if self._main_file is None:
            return 0, 0, 0
        try:
            records, corrupt = self._main_file.load()
        except AggStorageError:
            _logger.exception("Main store file unreadable; starting from staged artifacts only")
            return 0, 0, 0

        now = self._clock()
        loaded = expired = 0
        for record in records:
            if is_silent(now, record.received_at, self._expiry_seconds):
                expired += 1
                continue
            self._store.upsert(record.reading, received_at=record.received_at)
            loaded += 1
        return loaded, expired, corrupt

    def _replay_staging(self) -> tuple[list[StagingArtifact], int, int, int, int]:
        now = self._clock()
        live: list[StagingArtifact] = []
        expired = 0
        for artifact in self._staging.scan():
            if is_silent(now, artifact.modified_at, self._expiry_seconds):
                _logger.info("Discarding expired staging artifact %s", artifact.name)
                self._discard(artifact)
                expired += 1
            else:
                live.append(artifact)

        live.sort(key=lambda a: (a.modified_at, a.name))

        processed: list[StagingArtifact] = []
        replayed = corrupt = superseded = 0
        for artifact in live:
            try:
                reading = self._staging.read(artifact)
            except (ReadingParseError, AggStorageError) as exc:
                _logger.warning("Discarding unreadable staging artifact %s: %s", artifact.name, exc)
                self._discard(artifact)
                corrupt += 1
                continue

            existing = self._store.latest_record_for(reading.id)
            if existing is not None and existing.received_at >= artifact.modified_at:
                superseded += 1
            else:
                self._store.upsert(reading, received_at=artifact.modified_at)
                replayed += 1
            processed.append(artifact)
        return processed, replayed, expired, corrupt, superseded

    def _discard(self, artifact: StagingArtifact) -> None:
        try:
            self._staging.discard(artifact)
        except AggStorageError:
            _logger.warning("Could not delete staging artifact %s", artifact.name, exc_info=True)
