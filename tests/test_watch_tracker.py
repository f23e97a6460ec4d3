from __future__ import annotations

import math
from datetime import datetime, timedelta

import pytest

from conftest import FIXED_NOW

from playshelf.core.watch_tracker import WatchTracker, day_key, round_half_up
from playshelf.database.schema import Slot
from playshelf.database.store import MemoryBackend, Store

NOW_MS = int(FIXED_NOW.timestamp() * 1000)
TODAY = FIXED_NOW.date()


def _tracker(initial=None) -> WatchTracker:
    return WatchTracker(Store(MemoryBackend(initial)), clock=lambda: FIXED_NOW)


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.49) == 2


def test_two_sessions_same_day_accumulate() -> None:
    tracker = _tracker()

    assert tracker.add_watch_time("/v.mp4", 125)
    assert tracker.add_watch_time("/v.mp4", 60)

    stats = tracker.get_stats("/v.mp4")
    assert stats.total_minutes == pytest.approx(3.0833, abs=1e-3)
    assert stats.last_watched == NOW_MS
    assert stats.last14_minutes == 3
    assert tracker.store.get(Slot.WATCH_DAILY) == {"/v.mp4": {"2024-05-10": 185}}


def test_bucket_adds_rounded_seconds() -> None:
    tracker = _tracker()
    tracker.add_watch_time("/v.mp4", 10.5)
    tracker.add_watch_time("/v.mp4", 0.4)
    assert tracker.store.get(Slot.WATCH_DAILY)["/v.mp4"]["2024-05-10"] == 11


@pytest.mark.parametrize("seconds", [0, -5, math.nan, math.inf, -math.inf, True, "10", None])
def test_invalid_watch_time_is_rejected_without_mutation(seconds) -> None:
    tracker = _tracker({"watchStats": {"/v.mp4": {"lastWatched": 1, "totalMinutes": 1.0}}})

    assert tracker.add_watch_time("/v.mp4", seconds) is False
    assert tracker.store.get(Slot.WATCH_STATS) == {"/v.mp4": {"lastWatched": 1, "totalMinutes": 1.0}}
    assert tracker.store.get(Slot.WATCH_DAILY) == {}


def test_mark_watched_creates_record() -> None:
    tracker = _tracker()
    assert tracker.mark_watched("/new.mp4")

    stats = tracker.get_stats("/new.mp4")
    assert stats.last_watched == NOW_MS
    assert stats.total_minutes == 0
    assert stats.last_position_sec is None
    assert tracker.mark_watched("") is False


def test_last_position_is_rounded_and_leaves_totals_alone() -> None:
    tracker = _tracker()
    tracker.add_watch_time("/v.mp4", 30)

    assert tracker.set_last_position("/v.mp4", 42.5)
    assert tracker.set_last_position("/v.mp4", -1) is False
    assert tracker.set_last_position("/v.mp4", math.nan) is False

    stats = tracker.get_stats("/v.mp4")
    assert stats.last_position_sec == 43
    assert stats.total_minutes == pytest.approx(0.5)


def test_rolling_window_covers_today_and_previous_thirteen_days() -> None:
    buckets = {
        day_key(TODAY): 600,
        day_key(TODAY - timedelta(days=13)): 600,
        day_key(TODAY - timedelta(days=14)): 6000,
        day_key(TODAY + timedelta(days=1)): 6000,
    }
    tracker = _tracker({"watchDaily": {"/v.mp4": buckets}})

    assert tracker.get_stats("/v.mp4").last14_minutes == 20
    assert tracker.get_stats("/unknown.mp4").last14_minutes == 0


def test_buckets_follow_the_local_date() -> None:
    clock = {"now": datetime(2024, 5, 10, 23, 59)}
    tracker = WatchTracker(Store(MemoryBackend()), clock=lambda: clock["now"])

    tracker.add_watch_time("/v.mp4", 60)
    clock["now"] = datetime(2024, 5, 11, 0, 1)
    tracker.add_watch_time("/v.mp4", 120)

    assert tracker.store.get(Slot.WATCH_DAILY)["/v.mp4"] == {"2024-05-10": 60, "2024-05-11": 120}
    assert tracker.get_stats("/v.mp4").last14_minutes == 3


def test_history_is_most_recent_first() -> None:
    tracker = _tracker({
        "watchStats": {
            "/old.mp4": {"lastWatched": 100, "totalMinutes": 1},
            "/new.mp4": {"lastWatched": 300, "totalMinutes": 1},
            "/mid.mp4": {"lastWatched": 200, "totalMinutes": 1},
            "/never.mp4": {"lastWatched": 0, "totalMinutes": 0},
        }
    })
    assert list(tracker.get_history()) == ["/new.mp4", "/mid.mp4", "/old.mp4"]


def test_daily_totals_oldest_first_and_filtered_by_paths() -> None:
    tracker = _tracker({
        "watchDaily": {
            "/a.mp4": {"2024-05-10": 90, "2024-05-08": 600},
            "/b.mp4": {"2024-05-10": 60, "2024-04-01": 999},
        }
    })

    totals = tracker.get_daily_totals(3)
    assert totals.dates == ["2024-05-08", "2024-05-09", "2024-05-10"]
    assert totals.seconds == [600, 0, 150]
    assert totals.minutes == [10, 0, 3]

    only_b = tracker.get_daily_totals(3, paths=["/b.mp4", "/missing.mp4"])
    assert only_b.seconds == [0, 0, 60]

    assert len(tracker.get_daily_totals().dates) == 30


def test_out_of_shape_fields_do_not_wipe_stored_totals() -> None:
    tracker = _tracker({
        "watchStats": {
            "/v.mp4": {"lastWatched": 1.6, "totalMinutes": 50.0, "lastPositionSec": 42.7},
            "/w.mp4": {"lastWatched": "soon", "totalMinutes": 12.0, "lastPositionSec": "end"},
        }
    })

    before = tracker.get_stats("/v.mp4")
    assert before.total_minutes == 50.0
    assert before.last_position_sec == 43
    assert before.last_watched == 2

    assert tracker.add_watch_time("/v.mp4", 60)
    assert tracker.get_stats("/v.mp4").total_minutes == pytest.approx(51.0)

    assert tracker.set_last_position("/w.mp4", 10)
    w = tracker.get_stats("/w.mp4")
    assert w.total_minutes == 12.0
    assert w.last_position_sec == 10
    assert w.last_watched == 0


def test_unreadable_record_is_left_untouched() -> None:
    tracker = _tracker({"watchStats": {"/v.mp4": "not a record"}})

    assert tracker.add_watch_time("/v.mp4", 60) is False
    assert tracker.mark_watched("/v.mp4") is False
    assert tracker.set_last_position("/v.mp4", 5) is False
    assert tracker.store.get(Slot.WATCH_STATS) == {"/v.mp4": "not a record"}
    assert tracker.store.get(Slot.WATCH_DAILY) == {}
    assert tracker.get_stats("/v.mp4").total_minutes == 0


class _StatsWriteFails(MemoryBackend):
    def write(self, key, value) -> None:
        if key == Slot.WATCH_STATS.value:
            raise OSError("disk full")
        super().write(key, value)


def test_failed_stats_write_leaves_daily_buckets_unchanged() -> None:
    backend = _StatsWriteFails({
        "watchStats": {"/v.mp4": {"lastWatched": 1, "totalMinutes": 2.0}},
        "watchDaily": {"/v.mp4": {"2024-05-10": 120}},
    })
    tracker = WatchTracker(Store(backend), clock=lambda: FIXED_NOW)

    assert tracker.add_watch_time("/v.mp4", 60) is False

    assert tracker.store.get(Slot.WATCH_DAILY) == {"/v.mp4": {"2024-05-10": 120}}
    assert backend.data["watchDaily"] == {"/v.mp4": {"2024-05-10": 120}}
    assert tracker.get_stats("/v.mp4").total_minutes == 2.0
