"""Background eviction of silent content sources."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from pyagg._constants import EXPIRY_SECONDS, SWEEP_INTERVAL_SECONDS
from pyagg.exceptions import AggStorageError
from pyagg.models.reports import SweepReport
from pyagg.store.records import RecordStore
from pyagg.store.staging import StagingArea

_logger = logging.getLogger(__name__)


class LivenessSweeper:
    """Periodically evict sources whose last PUT is older than the cutoff.

    Elapsed time is the only signal: a slow source and a dead one look the
    same until the cutoff passes. ``on_evict`` runs (in a worker thread)
    after every sweep that removed something; the service uses it to
    rewrite the main store file.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        staging: StagingArea | None = None,
        expiry_seconds: float = EXPIRY_SECONDS,
        interval: float = SWEEP_INTERVAL_SECONDS,
        on_evict: Callable[[SweepReport], None] | None = None,
    ) -> None:
        self._store = store
        self._staging = staging
        self._expiry_seconds = expiry_seconds
        self._interval = interval
        self._on_evict = on_evict
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> SweepReport:
        evicted = self._store.evict_older_than(self._expiry_seconds)
        if not evicted:
            return SweepReport()

        removed = 0
        if self._staging is not None:
            for source_id in evicted:
                for artifact in self._staging.artifacts_for(source_id):
                    try:
                        if self._staging.discard(artifact):
                            removed += 1
                    except AggStorageError:
                        _logger.warning("Could not delete staging artifact %s", artifact.name, exc_info=True)

        report = SweepReport(evicted=tuple(evicted), artifacts_removed=removed)
        _logger.info("Evicted silent sources %s (artifacts removed=%d)", ", ".join(evicted), removed)
        if self._on_evict is not None:
            self._on_evict(report)
        return report

    async def run(self) -> None:
        """Sweep forever at the configured interval."""
        while True:
            try:
                await asyncio.to_thread(self.sweep_once)
            except Exception:
                _logger.exception("Liveness sweep failed")
            await asyncio.sleep(self._interval)

    def start(self) -> asyncio.Task[None]:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="pyagg-liveness-sweeper")
        return self._task

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
