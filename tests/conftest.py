from __future__ import annotations

import time
from dataclasses import dataclass, field

import pytest


@dataclass
class FakeWallClock:
    """Settable stand-in for ``time.time`` so expiry tests never sleep."""

    now: float = field(default_factory=time.time)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock()
