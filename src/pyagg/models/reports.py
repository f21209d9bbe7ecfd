"""Summaries returned by startup recovery and liveness sweeps."""

from __future__ import annotations

from pyagg.models._base import AggBaseModel


class RecoveryReport(AggBaseModel):
    loaded: int = 0
    """Records restored from the main store file."""
    replayed: int = 0
    """Staged artifacts merged into the store."""
    expired: int = 0
    """Artifacts (or main-file records) discarded for exceeding the expiry cutoff."""
    corrupt: int = 0
    """Artifacts or main-file lines that failed to parse."""
    superseded: int = 0
    """Artifacts older than the record already loaded for the same source."""


class SweepReport(AggBaseModel):
    evicted: tuple[str, ...] = ()
    artifacts_removed: int = 0
