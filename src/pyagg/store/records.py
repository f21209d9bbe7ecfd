"""Bounded in-memory record store.

This is the only component allowed to merge accepted readings. Every
read and write goes through one store-wide lock; none of the critical
sections suspend, so the lock is a plain :class:`threading.Lock` and is
safe to take from the event loop and from worker threads alike.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from pyagg._constants import MAX_RECORDS
from pyagg.models.outcome import Outcome
from pyagg.models.reading import Reading
from pyagg.models.record import Record
from pyagg.store.policy import RetentionPolicy, is_silent, replaces_previous

_logger = logging.getLogger(__name__)


class RecordStore:
    """Ordered, size-bounded collection of records.

    ``_records`` holds insertion (arrival) order, oldest first. ``_latest``
    indexes each source's most recent record. ``_activity`` is the
    source-activity map consulted by the liveness sweeper.
    """

    def __init__(
        self,
        *,
        max_records: int = MAX_RECORDS,
        retention: RetentionPolicy = RetentionPolicy.LATEST_PER_SOURCE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_records < 1:
            raise ValueError("max_records must be at least 1")
        self._max_records = max_records
        self._retention = retention
        self._clock = clock
        self._records: list[Record] = []
        self._latest: dict[str, Record] = {}
        self._activity: dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def max_records(self) -> int:
        return self._max_records

    @property
    def retention(self) -> RetentionPolicy:
        return self._retention

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(self, reading: Reading, *, received_at: float | None = None) -> Outcome:
        """Append *reading* as the newest record.

        Returns ``Outcome.UPDATED`` when the source already has a record,
        otherwise ``Outcome.CREATED``. When the bound would be exceeded the
        globally oldest record is evicted first.
        """
        with self._lock:
            at = self._clock() if received_at is None else received_at
            record = Record(reading=reading, received_at=at)
            source_id = record.source_id

            previous = self._latest.get(source_id)
            outcome = Outcome.CREATED if previous is None else Outcome.UPDATED
            if previous is not None and replaces_previous(self._retention):
                self._remove_record(previous)

            while len(self._records) >= self._max_records:
                evicted = self._records.pop(0)
                self._reindex_after_removal(evicted)
                _logger.debug("Evicted oldest record for source=%s (bound=%d)", evicted.source_id, self._max_records)

            self._records.append(record)
            self._latest[source_id] = record
            self._activity[source_id] = at
            return outcome

    def touch(self, source_id: str, *, at: float | None = None) -> None:
        """Refresh the last-activity time of a source that still has a record.

        An evicted source stays evicted until its next :meth:`upsert`.
        """
        with self._lock:
            if source_id in self._latest:
                self._activity[source_id] = self._clock() if at is None else at

    def evict_older_than(self, cutoff: float) -> list[str]:
        """Remove every source silent for strictly longer than *cutoff* seconds.

        Returns the evicted source ids. A source is aged by the later of its
        activity time and its newest record's ``received_at``.
        """
        with self._lock:
            now = self._clock()
            evicted: list[str] = []
            for source_id, record in self._latest.items():
                last = max(self._activity.get(source_id, record.received_at), record.received_at)
                if is_silent(now, last, cutoff):
                    evicted.append(source_id)

            if not evicted:
                return evicted

            dropped = set(evicted)
            self._records = [r for r in self._records if r.source_id not in dropped]
            for source_id in evicted:
                self._latest.pop(source_id, None)
                self._activity.pop(source_id, None)
            return evicted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def latest(self) -> Reading | None:
        """Most recently inserted reading overall, or ``None`` when empty."""
        with self._lock:
            if not self._records:
                return None
            return self._records[-1].reading

    def latest_for(self, source_id: str) -> Reading | None:
        record = self.latest_record_for(source_id)
        return record.reading if record is not None else None

    def latest_record_for(self, source_id: str) -> Record | None:
        with self._lock:
            return self._latest.get(source_id)

    def last_activity(self, source_id: str) -> float | None:
        with self._lock:
            return self._activity.get(source_id)

    def snapshot(self) -> list[Record]:
        """Records in insertion order, oldest first."""
        with self._lock:
            return list(self._records)

    def source_ids(self) -> list[str]:
        with self._lock:
            return list(self._latest)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # ------------------------------------------------------------------
    # Internal helpers (caller holds the lock)
    # ------------------------------------------------------------------

    def _remove_record(self, record: Record) -> None:
        for index, candidate in enumerate(self._records):
            if candidate is record:
                del self._records[index]
                return

    def _reindex_after_removal(self, removed: Record) -> None:
        source_id = removed.source_id
        if self._latest.get(source_id) is not removed:
            return
        for candidate in reversed(self._records):
            if candidate.source_id == source_id:
                self._latest[source_id] = candidate
                return
        # Last record for the source is gone: it is evicted, not merely older.
        del self._latest[source_id]
        self._activity.pop(source_id, None)
