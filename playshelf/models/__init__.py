from .media import VideoFile, FolderEntry, DerivedAsset, file_uri
from .category import Category, CategoryItem, ItemKind
from .watch import WatchStat, WatchStatsView, DailyTotals
from .results import ToolResult, ToolErrorKind, ToolStatus
from .insights import (
    InsightReport,
    ExtensionBreakdown,
    FolderBreakdown,
    HistoryItem,
    MostWatchedVideo,
    MostWatchedCategory,
)
from .settings import AppSettings
