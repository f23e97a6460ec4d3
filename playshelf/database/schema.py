import copy
from enum import Enum
from typing import Any, Dict


class Slot(str, Enum):
    """Fixed set of named slots held by the store."""
    SETTINGS = "settings"
    LAST_FOLDER = "lastFolder"
    CATEGORIES = "categories"
    WATCH_STATS = "watchStats"
    WATCH_DAILY = "watchDaily"
    FOLDER_COVERS = "folderCovers"
    CATEGORY_COVERS = "categoryCovers"
    UI_PREFS = "uiPrefs"


# Neutral value per slot, returned when the slot is missing or malformed.
SLOT_DEFAULTS: Dict[Slot, Any] = {
    Slot.SETTINGS: {},
    Slot.LAST_FOLDER: None,
    Slot.CATEGORIES: [],
    Slot.WATCH_STATS: {},
    Slot.WATCH_DAILY: {},
    Slot.FOLDER_COVERS: {},
    Slot.CATEGORY_COVERS: {},
    Slot.UI_PREFS: {},
}


def default_for(slot: Slot) -> Any:
    return copy.deepcopy(SLOT_DEFAULTS[slot])


def coerce(slot: Slot, value: Any) -> Any:
    """Returns `value` if it has the slot's shape, else the slot default."""
    if value is None:
        return default_for(slot)
    if slot == Slot.LAST_FOLDER:
        return value if isinstance(value, str) else None
    expected = type(SLOT_DEFAULTS[slot])
    if not isinstance(value, expected):
        return default_for(slot)
    return value
