from __future__ import annotations

from typing import TYPE_CHECKING

from pyagg.models.outcome import Outcome
from pyagg.models.reading import Reading
from pyagg.store.policy import RetentionPolicy
from pyagg.store.records import RecordStore

if TYPE_CHECKING:
    from conftest import FakeWallClock


def _reading(source_id: str, **fields: str) -> Reading:
    return Reading({"id": source_id, **fields})


def test_empty_store_reads_return_none() -> None:
    store = RecordStore()
    assert store.latest() is None
    assert store.latest_for("S1") is None
    assert len(store) == 0
    assert store.evict_older_than(30.0) == []


def test_create_then_update_keeps_latest_per_source() -> None:
    store = RecordStore()

    assert store.upsert(_reading("S1", air_temp="10")) is Outcome.CREATED
    assert store.upsert(_reading("S2", air_temp="20")) is Outcome.CREATED
    assert store.upsert(_reading("S1", air_temp="11")) is Outcome.UPDATED

    assert len(store) == 2
    latest_s1 = store.latest_for("S1")
    assert latest_s1 is not None
    assert latest_s1["air_temp"] == "11"
    # The update is now the newest record overall.
    latest = store.latest()
    assert latest is not None
    assert latest.id == "S1"
    assert [r.source_id for r in store.snapshot()] == ["S2", "S1"]


def test_bound_keeps_twenty_most_recent_sources() -> None:
    store = RecordStore()
    for n in range(1, 26):
        store.upsert(_reading(f"S{n}"))

    assert len(store) == 20
    assert [r.source_id for r in store.snapshot()] == [f"S{n}" for n in range(6, 26)]
    assert store.latest_for("S5") is None
    assert store.latest_for("S6") is not None


def test_update_at_capacity_does_not_evict_another_source() -> None:
    store = RecordStore(max_records=3)
    for source_id in ("A", "B", "C"):
        store.upsert(_reading(source_id))

    assert store.upsert(_reading("A", v="2")) is Outcome.UPDATED
    assert sorted(store.source_ids()) == ["A", "B", "C"]


def test_size_eviction_forgets_source_activity(wall_clock: FakeWallClock) -> None:
    store = RecordStore(max_records=2, clock=wall_clock)
    for source_id in ("A", "B", "C"):
        store.upsert(_reading(source_id))
        store.touch(source_id)

    assert store.last_activity("A") is None
    # A evicted source starts over as new.
    assert store.upsert(_reading("A")) is Outcome.CREATED


def test_full_history_keeps_every_submission() -> None:
    store = RecordStore(max_records=4, retention=RetentionPolicy.FULL_HISTORY)
    store.upsert(_reading("S1", v="1"))
    store.upsert(_reading("S2", v="1"))
    assert store.upsert(_reading("S1", v="2")) is Outcome.UPDATED

    assert len(store) == 3
    latest_s1 = store.latest_for("S1")
    assert latest_s1 is not None and latest_s1["v"] == "2"


def test_full_history_reindexes_when_oldest_is_evicted() -> None:
    store = RecordStore(max_records=3, retention=RetentionPolicy.FULL_HISTORY)
    store.upsert(_reading("S1", v="1"))
    store.upsert(_reading("S1", v="2"))
    store.upsert(_reading("S2", v="1"))
    store.upsert(_reading("S2", v="2"))  # evicts S1 v1

    latest_s1 = store.latest_for("S1")
    assert latest_s1 is not None and latest_s1["v"] == "2"

    store.upsert(_reading("S3"))  # evicts S1 v2, the last S1 record
    assert store.latest_for("S1") is None
    assert store.upsert(_reading("S1")) is Outcome.CREATED


def test_evict_older_than_is_strict(wall_clock: FakeWallClock) -> None:
    store = RecordStore(clock=wall_clock)
    store.upsert(_reading("S1"))
    store.touch("S1")

    wall_clock.advance(30.0)
    assert store.evict_older_than(30.0) == []
    assert store.latest_for("S1") is not None

    wall_clock.advance(0.001)
    assert store.evict_older_than(30.0) == ["S1"]
    assert store.latest_for("S1") is None
    assert store.latest() is None
    assert store.last_activity("S1") is None


def test_evict_only_silent_sources(wall_clock: FakeWallClock) -> None:
    store = RecordStore(clock=wall_clock)
    store.upsert(_reading("old"))
    store.touch("old")
    wall_clock.advance(20.0)
    store.upsert(_reading("fresh"))
    store.touch("fresh")
    wall_clock.advance(15.0)

    assert store.evict_older_than(30.0) == ["old"]
    latest = store.latest()
    assert latest is not None and latest.id == "fresh"


def test_upsert_refreshes_activity(wall_clock: FakeWallClock) -> None:
    store = RecordStore(clock=wall_clock)
    store.upsert(_reading("S1"))
    assert store.last_activity("S1") == wall_clock.now

    wall_clock.advance(31.0)
    store.upsert(_reading("S1", v="2"))

    assert store.last_activity("S1") == wall_clock.now
    assert store.evict_older_than(30.0) == []


def test_stale_activity_does_not_age_a_fresh_record(wall_clock: FakeWallClock) -> None:
    store = RecordStore(clock=wall_clock)
    store.upsert(_reading("S1"))
    store.touch("S1", at=wall_clock.now - 100.0)

    assert store.evict_older_than(30.0) == []

    wall_clock.advance(31.0)
    assert store.evict_older_than(30.0) == ["S1"]


def test_touch_does_not_revive_evicted_source(wall_clock: FakeWallClock) -> None:
    store = RecordStore(clock=wall_clock)
    store.upsert(_reading("S1"))
    wall_clock.advance(31.0)
    store.evict_older_than(30.0)

    store.touch("S1")

    assert store.last_activity("S1") is None
    assert store.upsert(_reading("S1")) is Outcome.CREATED
