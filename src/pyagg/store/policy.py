"""Retention and expiry policy.

This module intentionally contains *no* storage or locking. The record
store asks it how to treat an update and whether a source has gone silent.
"""

from __future__ import annotations

from enum import StrEnum


class RetentionPolicy(StrEnum):
    LATEST_PER_SOURCE = "latest_per_source"
    """One record per source; an update replaces it and becomes the newest."""
    FULL_HISTORY = "full_history"
    """Every accepted submission is kept as its own record."""


def replaces_previous(policy: RetentionPolicy) -> bool:
    """Whether an update for a known source removes its previous record."""
    return policy is RetentionPolicy.LATEST_PER_SOURCE


def is_silent(now: float, last_activity: float, cutoff: float) -> bool:
    """A source is silent once its age strictly exceeds *cutoff*.

    A source seen exactly *cutoff* seconds ago is still present.
    """
    return (now - last_activity) > cutoff
