"""GET: return the newest reading, optionally for one source."""

from __future__ import annotations

import logging

from pyagg.clock import LogicalClock
from pyagg.models.outcome import Outcome, QueryResult
from pyagg.store.records import RecordStore

_logger = logging.getLogger(__name__)


class QueryProtocol:
    """Serve reads. Never mutates the store or source activity."""

    def __init__(self, clock: LogicalClock, store: RecordStore) -> None:
        self._clock = clock
        self._store = store

    def query(self, received_clock: int, source_id: str | None = None) -> QueryResult:
        self._clock.observe(received_clock)
        if source_id is None:
            reading = self._store.latest()
        else:
            reading = self._store.latest_for(source_id)
        clock = self._clock.tick()

        if reading is None:
            _logger.debug("GET source=%s -> not found clock=%d", source_id, clock)
            return QueryResult(outcome=Outcome.NOT_FOUND, clock=clock, detail="No data")
        _logger.debug("GET source=%s -> %s clock=%d", source_id, reading.id, clock)
        return QueryResult(outcome=Outcome.FOUND, clock=clock, reading=reading)
