from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from pyagg.models.reading import Reading
from pyagg.models.reports import SweepReport
from pyagg.store.records import RecordStore
from pyagg.store.staging import StagingArea
from pyagg.sweeper import LivenessSweeper

if TYPE_CHECKING:
    from conftest import FakeWallClock


def _store_with(wall_clock: FakeWallClock, *source_ids: str) -> RecordStore:
    store = RecordStore(clock=wall_clock)
    for source_id in source_ids:
        store.upsert(Reading({"id": source_id}))
        store.touch(source_id)
    return store


def test_silent_source_is_evicted_after_cutoff(wall_clock: FakeWallClock) -> None:
    store = _store_with(wall_clock, "S1")
    sweeper = LivenessSweeper(store, expiry_seconds=30.0)

    wall_clock.advance(31.0)
    report = sweeper.sweep_once()

    assert report.evicted == ("S1",)
    assert store.latest_for("S1") is None


def test_exactly_cutoff_is_retained(wall_clock: FakeWallClock) -> None:
    store = _store_with(wall_clock, "S1")
    sweeper = LivenessSweeper(store, expiry_seconds=30.0)

    wall_clock.advance(30.0)

    assert sweeper.sweep_once() == SweepReport()
    assert store.latest_for("S1") is not None


def test_active_source_survives(wall_clock: FakeWallClock) -> None:
    store = _store_with(wall_clock, "S1")
    sweeper = LivenessSweeper(store, expiry_seconds=30.0)

    wall_clock.advance(25.0)
    store.upsert(Reading({"id": "S1", "v": "2"}))
    store.touch("S1")
    wall_clock.advance(25.0)

    assert sweeper.sweep_once().evicted == ()


def test_evicted_sources_lose_staging_artifacts(tmp_path: Path, wall_clock: FakeWallClock) -> None:
    staging = StagingArea(tmp_path / "staging")
    staging.ensure()
    store = _store_with(wall_clock, "S1", "S2")
    staging.stage(Reading({"id": "S1"}))
    staging.stage(Reading({"id": "S1"}))
    kept = staging.stage(Reading({"id": "S2"}))

    wall_clock.advance(10.0)
    store.touch("S2")
    wall_clock.advance(25.0)
    report = LivenessSweeper(store, staging=staging, expiry_seconds=30.0).sweep_once()

    assert report.evicted == ("S1",)
    assert report.artifacts_removed == 2
    assert [a.path for a in staging.scan()] == [kept.path]


def test_on_evict_called_only_when_something_was_evicted(wall_clock: FakeWallClock) -> None:
    calls: list[SweepReport] = []
    store = _store_with(wall_clock, "S1")
    sweeper = LivenessSweeper(store, expiry_seconds=30.0, on_evict=calls.append)

    sweeper.sweep_once()
    assert calls == []

    wall_clock.advance(31.0)
    sweeper.sweep_once()
    assert [c.evicted for c in calls] == [("S1",)]


@pytest.mark.asyncio
async def test_background_task_sweeps_until_stopped(wall_clock: FakeWallClock) -> None:
    store = _store_with(wall_clock, "S1")
    sweeper = LivenessSweeper(store, expiry_seconds=30.0, interval=0.01)
    wall_clock.advance(31.0)

    sweeper.start()
    assert sweeper.is_running
    for _ in range(200):
        if len(store) == 0:
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()

    assert len(store) == 0
    assert not sweeper.is_running


@pytest.mark.asyncio
async def test_sweep_errors_do_not_stop_the_loop(
    wall_clock: FakeWallClock, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = _store_with(wall_clock)
    sweeper = LivenessSweeper(store, interval=0.01)
    calls = 0

    def _boom(cutoff: float) -> list[str]:
        nonlocal calls
        calls += 1
        raise RuntimeError("boom")

    monkeypatch.setattr(store, "evict_older_than", _boom)

    sweeper.start()
    for _ in range(200):
        if calls >= 2:
            break
        await asyncio.sleep(0.01)
    await sweeper.stop()

    assert calls >= 2
