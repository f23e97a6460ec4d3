from typing import Any, Dict, Optional, Tuple

from ..models.settings import AppSettings
from .schema import Slot
from .store import Store


class PreferencesRepository:
    """Settings, last-used folder and free-form UI preferences."""

    def __init__(self, store: Store):
        self.store = store

    def get_app_settings(self) -> AppSettings:
        try:
            return AppSettings(**self.store.get(Slot.SETTINGS))
        except ValueError:
            return AppSettings()

    def _save_settings(self, settings: AppSettings) -> bool:
        return self.store.set(Slot.SETTINGS, settings.model_dump(by_alias=True, exclude_none=True))

    def set_app_settings(self, enable_hover_previews: Optional[bool] = None) -> bool:
        settings = self.get_app_settings()
        if isinstance(enable_hover_previews, bool):
            settings.enable_hover_previews = enable_hover_previews
        return self._save_settings(settings)

    def get_tool_paths(self) -> Dict[str, Optional[str]]:
        settings = self.get_app_settings()
        return {"ffmpeg_path": settings.ffmpeg_path, "ffprobe_path": settings.ffprobe_path}

    def set_tool_paths(self, ffmpeg_path: Optional[str] = None, ffprobe_path: Optional[str] = None) -> bool:
        """Stores non-empty overrides; empty values leave the current one in place."""
        settings = self.get_app_settings()
        if ffmpeg_path:
            settings.ffmpeg_path = ffmpeg_path
        if ffprobe_path:
            settings.ffprobe_path = ffprobe_path
        return self._save_settings(settings)

    def resolve_tool_paths(self, default_ffmpeg: str, default_ffprobe: str) -> Tuple[str, str]:
        settings = self.get_app_settings()
        return (settings.ffmpeg_path or default_ffmpeg, settings.ffprobe_path or default_ffprobe)

    def get_last_folder(self) -> Optional[str]:
        return self.store.get(Slot.LAST_FOLDER)

    def set_last_folder(self, folder: str) -> bool:
        if not folder:
            return False
        return self.store.set(Slot.LAST_FOLDER, folder)

    def get_ui_prefs(self) -> Dict[str, Any]:
        return self.store.get(Slot.UI_PREFS)

    def set_ui_prefs(self, updates: Dict[str, Any]) -> bool:
        """Shallow-merges `updates` into the stored preferences."""
        if not isinstance(updates, dict):
            return False
        prefs = self.get_ui_prefs()
        prefs.update(updates)
        return self.store.set(Slot.UI_PREFS, prefs)
