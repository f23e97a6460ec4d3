import asyncio
import os
from typing import Dict, List, Mapping, Optional, Sequence

from ..config import (
    COMPLETED_LIST_SIZE,
    COMPLETION_RATIO,
    DEFAULT_DAILY_TOTAL_DAYS,
    HISTORY_WORKING_SET,
    NEAR_START_POSITION_SEC,
    RECENT_LIST_SIZE,
    TOP_BREAKDOWN_SIZE,
)
from ..database.categories import CategoryRepository
from ..models.category import Category
from ..models.insights import (
    ExtensionBreakdown,
    FolderBreakdown,
    HistoryItem,
    InsightReport,
    MostWatchedCategory,
    MostWatchedVideo,
)
from ..models.media import DerivedAsset
from ..models.watch import DailyTotals, WatchStatsView
from ..scanner.path_classifier import extension_of, file_name, parent_of
from .asset_cache import DerivedAssetCache
from .watch_tracker import WatchTracker, round_half_up


def is_completed(
    duration: Optional[float],
    total_minutes: float,
    last_position_sec: Optional[int] = None,
) -> bool:
    """
    A file counts as completed when its duration is known and positive, and
    either >= 95% of it has been watched in total, or the saved position is
    in the last 5% of the file, or back within the first 10 seconds (played
    to the end, then reset).
    """
    if not duration or duration <= 0:
        return False
    if (total_minutes or 0) * 60 / duration >= COMPLETION_RATIO:
        return True
    if last_position_sec is None:
        return False
    return (
        last_position_sec <= NEAR_START_POSITION_SEC
        or last_position_sec / duration >= COMPLETION_RATIO
    )


def working_set(history: Mapping[str, int], limit: int = HISTORY_WORKING_SET) -> List[str]:
    """History paths, most recently watched first, capped at `limit`."""
    ordered = sorted(history.items(), key=lambda kv: kv[1] or 0, reverse=True)
    return [path for path, _ in ordered[:limit]]


def compute_insights(
    paths: Sequence[str],
    stats: Mapping[str, WatchStatsView],
    assets: Mapping[str, DerivedAsset],
    categories: Sequence[Category],
    daily: Optional[DailyTotals] = None,
) -> InsightReport:
    """Pure aggregation over an already-ordered working set."""
    if not paths:
        return InsightReport()

    def minutes_of(p: str) -> float:
        s = stats.get(p)
        return s.total_minutes if s else 0.0

    def item_of(p: str) -> HistoryItem:
        asset = assets.get(p)
        return HistoryItem(path=p, name=file_name(p), thumb=asset.thumb_url if asset else None)

    total_minutes = sum(round_half_up(minutes_of(p)) for p in paths)
    last14_minutes = sum((stats[p].last14_minutes if p in stats else 0) for p in paths)

    # by extension: count desc
    ext_agg: Dict[str, ExtensionBreakdown] = {}
    for p in paths:
        ext = extension_of(p)
        if not ext:
            continue
        agg = ext_agg.setdefault(ext, ExtensionBreakdown(key=ext.upper()))
        agg.count += 1
        agg.minutes += minutes_of(p)
    by_ext = sorted(ext_agg.values(), key=lambda e: e.count, reverse=True)[:TOP_BREAKDOWN_SIZE]

    # by folder: minutes desc
    folder_agg: Dict[str, float] = {}
    for p in paths:
        folder = parent_of(p)
        folder_agg[folder] = folder_agg.get(folder, 0.0) + minutes_of(p)
    by_folder = [
        FolderBreakdown(key=k, minutes=v)
        for k, v in sorted(folder_agg.items(), key=lambda kv: kv[1], reverse=True)[:TOP_BREAKDOWN_SIZE]
    ]

    most_watched_video: Optional[MostWatchedVideo] = None
    for p in paths:
        minutes = minutes_of(p)
        if most_watched_video is None or minutes > most_watched_video.minutes:
            most_watched_video = MostWatchedVideo(**item_of(p).model_dump(), minutes=minutes)

    completed: List[HistoryItem] = []
    for p in paths:
        asset = assets.get(p)
        s = stats.get(p)
        if is_completed(
            asset.duration if asset else None,
            s.total_minutes if s else 0.0,
            s.last_position_sec if s else None,
        ):
            completed.append(item_of(p))

    most_watched_category: Optional[MostWatchedCategory] = None
    for category in categories:
        minutes = sum(minutes_of(p) for p in paths if category.covers_path(p))
        if minutes <= 0:
            continue
        if most_watched_category is None or minutes > most_watched_category.minutes:
            most_watched_category = MostWatchedCategory(id=category.id, name=category.name, minutes=minutes)

    report = InsightReport(
        total_minutes=total_minutes,
        last14_minutes=last14_minutes,
        total_items=len(paths),
        by_ext=by_ext,
        by_folder=by_folder,
        recent=[item_of(p) for p in paths[:RECENT_LIST_SIZE]],
        most_watched_video=most_watched_video,
        most_watched_category=most_watched_category,
        completed_count=len(completed),
        completed=completed[:COMPLETED_LIST_SIZE],
    )
    if daily is not None:
        report.daily_dates = list(daily.dates)
        report.daily_minutes = daily.minutes
    return report


class InsightsAggregator:
    """
    Read-only summary builder. Gathers stats from the tracker, durations and
    thumbnails from the asset cache (bounded concurrency), then aggregates.
    """
    def __init__(
        self,
        tracker: WatchTracker,
        asset_cache: DerivedAssetCache,
        categories: CategoryRepository,
        max_concurrency: Optional[int] = None,
    ):
        self.tracker = tracker
        self.asset_cache = asset_cache
        self.categories = categories
        self.max_concurrency = max_concurrency or os.cpu_count() or 4

    async def build(
        self,
        history: Optional[Mapping[str, int]] = None,
        days: int = DEFAULT_DAILY_TOTAL_DAYS,
    ) -> InsightReport:
        if history is None:
            history = self.tracker.get_history()
        paths = working_set(history)
        if not paths:
            return InsightReport()

        stats = {p: self.tracker.get_stats(p) for p in paths}

        sem = asyncio.Semaphore(self.max_concurrency)

        async def _asset(p: str) -> DerivedAsset:
            async with sem:
                return await self.asset_cache.get_or_create(p)

        resolved = await asyncio.gather(*(_asset(p) for p in paths))
        assets = dict(zip(paths, resolved))

        return compute_insights(
            paths,
            stats,
            assets,
            self.categories.list(),
            daily=self.tracker.get_daily_totals(days, paths=paths),
        )
