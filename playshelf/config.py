import os
from typing import Optional, Tuple
from pydantic import Field
from pydantic_settings import BaseSettings

# ==============================================================================
# CONSTANTS & PATHS
# ==============================================================================

HOME_DIR = os.path.expanduser("~")

# Container formats offered to the player. Compared against the lowercase
# extension without its leading dot.
VIDEO_EXTENSIONS: Tuple[str, ...] = (
    "mp4", "mkv", "avi", "mov", "wmv", "webm", "flv", "m4v", "ts", "mts", "m2ts",
)

# Scanner defaults
DEFAULT_SCAN_RECURSIVE = True
DEFAULT_SCAN_DEPTH = 2

# Derived assets
THUMB_EXTENSION = ".jpg"
THUMB_WIDTH = 640
THUMB_TIMEMARK_PERCENT = 5
COVER_SIZE = (640, 360)

# Watch statistics
ROLLING_WINDOW_DAYS = 14
DEFAULT_DAILY_TOTAL_DAYS = 30

# Insights
HISTORY_WORKING_SET = 300
TOP_BREAKDOWN_SIZE = 6
RECENT_LIST_SIZE = 8
COMPLETED_LIST_SIZE = 12
COMPLETION_RATIO = 0.95
NEAR_START_POSITION_SEC = 10


# ==============================================================================
# SETTINGS MODEL
# ==============================================================================

class EnvSettings(BaseSettings):
    """
    Process-level settings.
    Loads from env vars (PLAYSHELF_*) or defaults. User-editable settings
    (hover previews, tool overrides) live in the store instead.
    """
    data_dir: Optional[str] = Field(None, description="Directory for the store and derived assets")
    cache_dir: Optional[str] = Field(None, description="Directory for thumbnails and covers")

    ffmpeg_path: str = Field("ffmpeg")
    ffprobe_path: str = Field("ffprobe")

    scan_depth: int = Field(DEFAULT_SCAN_DEPTH)

    class Config:
        env_prefix = "PLAYSHELF_"
        extra = "ignore"


# ==============================================================================
# CONFIG MANAGER
# ==============================================================================

class ConfigManager:
    """
    Resolves the on-disk layout:

        <data_dir>/playshelf.db      primary store
        <data_dir>/settings.json     fallback store
        <cache_dir>/thumbnails/      derived thumbnails
        <cache_dir>/covers/          folder & category covers

    Docker volume mounts are supported through CONFIG_DIR / CACHE_DIR.
    """
    def __init__(self, data_dir: Optional[str] = None, settings: Optional[EnvSettings] = None):
        self.settings = settings or EnvSettings()

        data_override = data_dir or self.settings.data_dir or os.getenv("CONFIG_DIR")
        cache_override = self.settings.cache_dir or os.getenv("CACHE_DIR")

        if data_override:
            self._data_dir = os.path.abspath(os.path.expanduser(data_override))
        else:
            self._data_dir = os.path.join(HOME_DIR, ".playshelf")

        if cache_override:
            self._cache_dir = os.path.abspath(os.path.expanduser(cache_override))
        else:
            self._cache_dir = self._data_dir

    def ensure_directories(self) -> None:
        for d in [self.data_dir, self.thumb_dir, self.covers_dir]:
            os.makedirs(d, exist_ok=True)

    @property
    def data_dir(self) -> str:
        return self._data_dir

    @property
    def thumb_dir(self) -> str:
        return os.path.join(self._cache_dir, "thumbnails")

    @property
    def covers_dir(self) -> str:
        return os.path.join(self._cache_dir, "covers")

    @property
    def db_file(self) -> str:
        return os.path.join(self._data_dir, "playshelf.db")

    @property
    def json_file(self) -> str:
        return os.path.join(self._data_dir, "settings.json")


def log(message: str) -> None:
    """Console diagnostics; silenced by PLAYSHELF_QUIET=1."""
    if os.getenv("PLAYSHELF_QUIET", "").lower() in ("1", "true", "yes"):
        return
    print(message)
