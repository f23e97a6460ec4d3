import copy
import math
from datetime import date, datetime, timedelta
from numbers import Real
from typing import Callable, Dict, Iterable, Optional

from ..config import DEFAULT_DAILY_TOTAL_DAYS, ROLLING_WINDOW_DAYS, log
from ..database.schema import Slot
from ..database.store import Store
from ..models.watch import DailyTotals, WatchStat, WatchStatsView


def round_half_up(value: float) -> int:
    """Rounds .5 away from zero for positive values (Python's round() is half-to-even)."""
    return int(math.floor(value + 0.5))


def day_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def _valid_seconds(seconds) -> bool:
    return isinstance(seconds, Real) and not isinstance(seconds, bool) and math.isfinite(seconds)


class WatchTracker:
    """
    Accumulates playback time into the watchStats and watchDaily slots.

    `clock` returns the current local datetime; tests inject a fixed one.
    Daily buckets are keyed by local calendar date and are never pruned.
    """
    def __init__(self, store: Store, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._clock = clock or datetime.now

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    def _today(self) -> date:
        return self._clock().date()

    def _load_stats(self) -> Dict[str, dict]:
        return self.store.get(Slot.WATCH_STATS)

    def _entry(self, stats: Dict[str, dict], path: str) -> Optional[WatchStat]:
        """Stored record for `path` (blank when absent); None if it cannot be read."""
        raw = stats.get(path)
        if raw is None:
            return WatchStat()
        if not isinstance(raw, dict):
            return None
        try:
            return WatchStat(**raw)
        except (TypeError, ValueError):
            return None

    def _existing(self, stats: Dict[str, dict], path: str) -> Optional[WatchStat]:
        entry = self._entry(stats, path)
        if entry is None:
            log(f"⚠️ Unreadable watch record for {path}; leaving it untouched")
        return entry

    def _save_entry(self, stats: Dict[str, dict], path: str, entry: WatchStat) -> bool:
        stats[path] = entry.model_dump(by_alias=True, exclude_none=True)
        return self.store.set(Slot.WATCH_STATS, stats)

    def mark_watched(self, path: str) -> bool:
        """Stamps last_watched = now, creating the record if needed."""
        if not path:
            return False
        stats = self._load_stats()
        entry = self._existing(stats, path)
        if entry is None:
            return False
        entry.last_watched = self._now_ms()
        return self._save_entry(stats, path, entry)

    def add_watch_time(self, path: str, seconds: float) -> bool:
        """
        Adds `seconds` of playback: seconds/60 to the cumulative minutes and
        round(seconds) to today's bucket. Non-positive or non-finite values are
        rejected without touching anything.

        The daily bucket is written first; if the stats write then fails the
        previous buckets are restored, so False means neither slot changed.
        """
        if not path or not _valid_seconds(seconds) or seconds <= 0:
            return False

        stats = self._load_stats()
        entry = self._existing(stats, path)
        if entry is None:
            return False

        daily = self.store.get(Slot.WATCH_DAILY)
        previous_daily = copy.deepcopy(daily)
        buckets = daily.get(path)
        if not isinstance(buckets, dict):
            buckets = {}
        key = day_key(self._today())
        buckets[key] = _as_int(buckets.get(key)) + round_half_up(seconds)
        daily[path] = buckets
        if not self.store.set(Slot.WATCH_DAILY, daily):
            return False

        entry.total_minutes += seconds / 60
        entry.last_watched = self._now_ms()
        if not self._save_entry(stats, path, entry):
            self.store.set(Slot.WATCH_DAILY, previous_daily)
            return False
        return True

    def set_last_position(self, path: str, seconds: float) -> bool:
        """Stores the resume position; cumulative totals are not affected."""
        if not path or not _valid_seconds(seconds) or seconds < 0:
            return False
        stats = self._load_stats()
        entry = self._existing(stats, path)
        if entry is None:
            return False
        entry.last_position_sec = round_half_up(max(0, seconds))
        return self._save_entry(stats, path, entry)

    def get_stats(self, path: str) -> WatchStatsView:
        entry = self._entry(self._load_stats(), path) or WatchStat()
        buckets = self.store.get(Slot.WATCH_DAILY).get(path) or {}
        return WatchStatsView(
            last_watched=entry.last_watched,
            total_minutes=entry.total_minutes,
            last_position_sec=entry.last_position_sec,
            last14_minutes=round_half_up(self._window_seconds(buckets, ROLLING_WINDOW_DAYS) / 60),
        )

    def _window_seconds(self, buckets: Dict[str, int], days: int) -> int:
        if not isinstance(buckets, dict):
            return 0
        today = self._today()
        return sum(
            _as_int(buckets.get(day_key(today - timedelta(days=i))))
            for i in range(days)
        )

    def get_history(self) -> Dict[str, int]:
        """path -> last_watched (ms) for every watched file, most recent first."""
        history = {}
        for path, raw in self._load_stats().items():
            try:
                entry = WatchStat(**(raw or {}))
            except (TypeError, ValueError):
                continue
            if entry.last_watched > 0:
                history[path] = entry.last_watched
        return dict(sorted(history.items(), key=lambda kv: kv[1], reverse=True))

    def get_daily_totals(
        self,
        days: int = DEFAULT_DAILY_TOTAL_DAYS,
        paths: Optional[Iterable[str]] = None,
    ) -> DailyTotals:
        """
        Summed bucket seconds per date for the last `days` dates (oldest first),
        across every file or only `paths` when given.
        """
        days = max(1, int(days or DEFAULT_DAILY_TOTAL_DAYS))
        today = self._today()
        dates = [day_key(today - timedelta(days=i)) for i in range(days - 1, -1, -1)]

        daily = self.store.get(Slot.WATCH_DAILY)
        selected = daily.values() if paths is None else (daily.get(p) for p in set(paths))

        totals = dict.fromkeys(dates, 0)
        for buckets in selected:
            if not isinstance(buckets, dict):
                continue
            for key in dates:
                totals[key] += _as_int(buckets.get(key))
        return DailyTotals(dates=dates, seconds=[totals[d] for d in dates])


def _as_int(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
