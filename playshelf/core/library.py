from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..config import ConfigManager, DEFAULT_DAILY_TOTAL_DAYS, DEFAULT_SCAN_RECURSIVE
from ..database.categories import CategoryRepository
from ..database.preferences import PreferencesRepository
from ..database.store import Store, open_store
from ..models.category import Category, CategoryItem
from ..models.insights import InsightReport
from ..models.media import DerivedAsset, FolderEntry, VideoFile
from ..models.results import ToolErrorKind, ToolResult, ToolStatus
from ..models.settings import AppSettings
from ..models.watch import DailyTotals, WatchStatsView
from ..scanner.file_system import AsyncFileSystem
from ..scanner.media_probe import MediaProbe
from .asset_cache import DerivedAssetCache
from .covers import CoverManager
from .insights import InsightsAggregator
from .watch_tracker import WatchTracker


class Library:
    """
    Everything the presentation shell talks to, wired around one explicit store.

    Build with `Library.open()` for the on-disk layout, or pass a Store (e.g.
    over a MemoryBackend) and stand-in tool wrappers for tests.
    """
    def __init__(
        self,
        config: ConfigManager,
        store: Store,
        probe: Optional[MediaProbe] = None,
        clock: Optional[Callable[[], datetime]] = None,
        dedupe_in_flight: bool = True,
    ):
        self.config = config
        self.store = store
        self.preferences = PreferencesRepository(store)
        self.categories = CategoryRepository(store)
        self.tracker = WatchTracker(store, clock=clock)
        self.fs = AsyncFileSystem()
        self.probe = probe or MediaProbe(self.tool_paths)
        self.assets = DerivedAssetCache(
            config.thumb_dir,
            probe=self.probe,
            extractor=self.probe,
            dedupe_in_flight=dedupe_in_flight,
        )
        self.covers = CoverManager(store, config.covers_dir)
        self.insights = InsightsAggregator(self.tracker, self.assets, self.categories)

    @classmethod
    def open(cls, data_dir: Optional[str] = None, **kwargs) -> "Library":
        config = ConfigManager(data_dir=data_dir)
        config.ensure_directories()
        return cls(config, open_store(config), **kwargs)

    def close(self) -> None:
        self.store.close()

    def tool_paths(self) -> Tuple[str, str]:
        """Stored override -> environment setting -> bare name on PATH."""
        env = self.config.settings
        return self.preferences.resolve_tool_paths(env.ffmpeg_path, env.ffprobe_path)

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    async def scan(
        self,
        root: str,
        recursive: bool = DEFAULT_SCAN_RECURSIVE,
        max_depth: Optional[int] = None,
    ) -> List[VideoFile]:
        depth = self.config.settings.scan_depth if max_depth is None else max_depth
        return await self.fs.scan(root, recursive=recursive, max_depth=depth)

    async def list_folders(self, root: str) -> List[FolderEntry]:
        return await self.fs.list_folders(root)

    async def get_video_item(self, path: str) -> Optional[VideoFile]:
        return await self.fs.get_video_item(path)

    async def get_folder_item(self, path: str) -> Optional[FolderEntry]:
        return await self.fs.get_folder_item(path)

    async def get_meta(self, path: str) -> DerivedAsset:
        return await self.assets.get_or_create(path)

    async def hydrate(self, video: VideoFile) -> VideoFile:
        """Fills duration/thumb of a scanned item from the asset cache."""
        asset = await self.assets.get_or_create(video.path)
        return video.model_copy(update={"duration": asset.duration, "thumb": asset.thumb_url})

    async def check_tools(self) -> ToolStatus:
        return await self.probe.check_tools()

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def get_categories(self) -> List[Category]:
        return self.categories.list()

    def create_category(self, name: str) -> Optional[Category]:
        return self.categories.create(name)

    def rename_category(self, category_id: str, name: str) -> bool:
        return self.categories.rename(category_id, name)

    def delete_category(self, category_id: str) -> bool:
        return self.categories.delete(category_id)

    def add_to_category(self, category_id: str, items: Iterable[CategoryItem]) -> bool:
        return self.categories.add_items(category_id, items)

    def remove_from_category(self, category_id: str, item: CategoryItem) -> bool:
        return self.categories.remove_item(category_id, item)

    # ------------------------------------------------------------------
    # Watch history
    # ------------------------------------------------------------------

    def mark_watched(self, path: str) -> bool:
        return self.tracker.mark_watched(path)

    def add_watch_time(self, path: str, seconds: float) -> bool:
        return self.tracker.add_watch_time(path, seconds)

    def set_last_position(self, path: str, seconds: float) -> bool:
        return self.tracker.set_last_position(path, seconds)

    def get_stats(self, path: str) -> WatchStatsView:
        return self.tracker.get_stats(path)

    def get_history(self) -> Dict[str, int]:
        return self.tracker.get_history()

    def get_daily_totals(self, days: int = DEFAULT_DAILY_TOTAL_DAYS) -> DailyTotals:
        return self.tracker.get_daily_totals(days)

    async def get_insights(
        self,
        history: Optional[Dict[str, int]] = None,
        days: int = DEFAULT_DAILY_TOTAL_DAYS,
    ) -> InsightReport:
        return await self.insights.build(history, days=days)

    # ------------------------------------------------------------------
    # Settings & covers
    # ------------------------------------------------------------------

    def get_app_settings(self) -> AppSettings:
        return self.preferences.get_app_settings()

    def set_app_settings(self, enable_hover_previews: Optional[bool] = None) -> bool:
        return self.preferences.set_app_settings(enable_hover_previews)

    def get_tool_paths(self) -> Dict[str, Optional[str]]:
        return self.preferences.get_tool_paths()

    def set_tool_paths(self, ffmpeg_path: Optional[str] = None, ffprobe_path: Optional[str] = None) -> bool:
        return self.preferences.set_tool_paths(ffmpeg_path, ffprobe_path)

    def get_last_folder(self) -> Optional[str]:
        return self.preferences.get_last_folder()

    def set_last_folder(self, folder: str) -> bool:
        return self.preferences.set_last_folder(folder)

    def get_ui_prefs(self) -> Dict[str, Any]:
        return self.preferences.get_ui_prefs()

    def set_ui_prefs(self, updates: Dict[str, Any]) -> bool:
        return self.preferences.set_ui_prefs(updates)

    def get_folder_covers(self) -> Dict[str, str]:
        return self.covers.get_folder_covers()

    async def set_folder_cover(self, folder_path: str, image_path: str) -> ToolResult:
        return await self.covers.set_folder_cover(folder_path, image_path)

    def clear_folder_cover(self, folder_path: str) -> bool:
        return self.covers.clear_folder_cover(folder_path)

    def get_category_covers(self) -> Dict[str, str]:
        return self.covers.get_category_covers()

    async def set_category_cover(self, category_id: str, image_path: str) -> ToolResult:
        if self.categories.get(category_id) is None:
            return ToolResult.failure(ToolErrorKind.NOT_FOUND, f"unknown category {category_id}")
        return await self.covers.set_category_cover(category_id, image_path)

    def clear_category_cover(self, category_id: str) -> bool:
        return self.covers.clear_category_cover(category_id)
