from typing import List, Optional
from pydantic import BaseModel, Field


class ExtensionBreakdown(BaseModel):
    key: str
    count: int = 0
    minutes: float = 0.0


class FolderBreakdown(BaseModel):
    key: str
    minutes: float = 0.0


class HistoryItem(BaseModel):
    """A working-set file as shown in the recent/completed strips."""
    path: str
    name: str
    thumb: Optional[str] = None


class MostWatchedVideo(HistoryItem):
    minutes: float = 0.0


class MostWatchedCategory(BaseModel):
    id: Optional[str] = None
    name: str
    minutes: float = 0.0


class InsightReport(BaseModel):
    """
    Summary statistics over the bounded watch-history working set.
    """
    total_minutes: int = 0
    last14_minutes: int = 0
    total_items: int = 0
    by_ext: List[ExtensionBreakdown] = Field(default_factory=list)
    by_folder: List[FolderBreakdown] = Field(default_factory=list)
    recent: List[HistoryItem] = Field(default_factory=list)
    most_watched_video: Optional[MostWatchedVideo] = None
    most_watched_category: Optional[MostWatchedCategory] = None
    completed_count: int = 0
    completed: List[HistoryItem] = Field(default_factory=list)

    # Chart data for the last N days
    daily_dates: List[str] = Field(default_factory=list)
    daily_minutes: List[int] = Field(default_factory=list)
