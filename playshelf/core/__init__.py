# playshelf core package

from .asset_cache import DerivedAssetCache
from .watch_tracker import WatchTracker
from .insights import InsightsAggregator, compute_insights, is_completed
from .covers import CoverManager
from .maintenance import purge_thumbnails, purge_broken_thumbnails, cleanup_orphans
from .library import Library
