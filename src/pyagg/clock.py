"""Process-local Lamport clock.

The aggregator owns exactly one :class:`LogicalClock`. Handlers call
:meth:`LogicalClock.observe` with the value a request carried and
:meth:`LogicalClock.tick` to stamp the response, so the response always
carries a value strictly greater than anything the sender had seen.
"""

from __future__ import annotations

import threading


class LogicalClock:
    """Thread-safe Lamport counter.

    Both operations hold an internal lock for the whole read-max-write
    sequence, independent of the record store's lock.
    """

    def __init__(self, initial: int = 0) -> None:
        if initial < 0:
            raise ValueError("initial clock value must be non-negative")
        self._time = initial
        self._lock = threading.Lock()

    @property
    def time(self) -> int:
        """Current value without advancing the clock."""
        with self._lock:
            return self._time

    def tick(self) -> int:
        """Advance for a local event and return the new value."""
        with self._lock:
            self._time += 1
            return self._time

    def observe(self, received: int) -> int:
        """Resynchronise on a received timestamp: ``max(time, received) + 1``."""
        with self._lock:
            self._time = max(self._time, received) + 1
            return self._time

    def __repr__(self) -> str:
        return f"LogicalClock(time={self.time})"
