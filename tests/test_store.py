from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from playshelf.config import ConfigManager, EnvSettings
from playshelf.database.json_store import JSONStore
from playshelf.database.schema import SLOT_DEFAULTS, Slot
from playshelf.database.sqlite_store import SQLiteStore
from playshelf.database.store import MemoryBackend, Store, open_store


@pytest.mark.parametrize("slot", list(Slot))
def test_missing_slots_read_as_neutral_defaults(slot: Slot) -> None:
    store = Store(MemoryBackend())
    assert store.get(slot) == SLOT_DEFAULTS[slot]


def test_malformed_slot_values_read_as_defaults() -> None:
    store = Store(MemoryBackend({"categories": {"not": "a list"}, "lastFolder": 42, "watchStats": []}))
    assert store.get(Slot.CATEGORIES) == []
    assert store.get(Slot.LAST_FOLDER) is None
    assert store.get(Slot.WATCH_STATS) == {}


def test_values_are_copied_in_and_out() -> None:
    store = Store(MemoryBackend())
    stats = {"/v.mp4": {"lastWatched": 1, "totalMinutes": 2.0}}
    assert store.set(Slot.WATCH_STATS, stats) is True

    stats["/v.mp4"]["totalMinutes"] = 99.0
    read = store.get(Slot.WATCH_STATS)
    read["/other.mp4"] = {}

    assert store.get(Slot.WATCH_STATS) == {"/v.mp4": {"lastWatched": 1, "totalMinutes": 2.0}}


def test_unserialisable_value_is_rejected_without_change() -> None:
    store = Store(MemoryBackend())
    store.set(Slot.UI_PREFS, {"theme": "dark"})

    assert store.set(Slot.UI_PREFS, {"bad": object()}) is False
    assert store.get(Slot.UI_PREFS) == {"theme": "dark"}


def test_reset_restores_default() -> None:
    store = Store(MemoryBackend({"lastFolder": "/lib"}))
    assert store.reset(Slot.LAST_FOLDER) is True
    assert store.get(Slot.LAST_FOLDER) is None


def test_json_backend_persists_atomically(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    store = Store(JSONStore(str(path)))
    assert store.backend_name == "json"
    assert store.set(Slot.LAST_FOLDER, "/lib/movies")
    assert store.set(Slot.CATEGORIES, [{"id": "c1", "name": "Kids", "items": []}])

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["lastFolder"] == "/lib/movies"
    assert [p.name for p in tmp_path.iterdir()] == ["settings.json"]

    reopened = Store(JSONStore(str(path)))
    assert reopened.get(Slot.CATEGORIES)[0]["name"] == "Kids"


def test_json_backend_treats_corrupt_file_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{ not json", encoding="utf-8")

    store = Store(JSONStore(str(path)))

    assert store.get(Slot.WATCH_STATS) == {}
    assert store.set(Slot.LAST_FOLDER, "/lib")
    assert json.loads(path.read_text(encoding="utf-8")) == {"lastFolder": "/lib"}


def test_write_failure_reports_false_and_keeps_last_value(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where a directory should be")
    store = Store(JSONStore(str(blocker / "settings.json")))

    assert store.set(Slot.LAST_FOLDER, "/lib") is False
    assert store.get(Slot.LAST_FOLDER) is None


def test_sqlite_backend_round_trips_across_reopen(tmp_path: Path) -> None:
    db = str(tmp_path / "playshelf.db")
    store = Store(SQLiteStore(db))
    assert store.backend_name == "sqlite"
    assert store.set(Slot.WATCH_DAILY, {"/v.mp4": {"2024-05-10": 185}})
    assert store.set(Slot.WATCH_DAILY, {"/v.mp4": {"2024-05-10": 200}})
    store.close()

    reopened = Store(SQLiteStore(db))
    assert reopened.get(Slot.WATCH_DAILY) == {"/v.mp4": {"2024-05-10": 200}}
    reopened.close()


def test_sqlite_migrates_legacy_json_once(tmp_path: Path) -> None:
    legacy = tmp_path / "settings.json"
    legacy.write_text(json.dumps({"lastFolder": "/old", "settings": {"enableHoverPreviews": False}}))

    store = Store(SQLiteStore(str(tmp_path / "playshelf.db"), legacy_json_file=str(legacy)))

    assert store.get(Slot.LAST_FOLDER) == "/old"
    assert store.get(Slot.SETTINGS) == {"enableHoverPreviews": False}
    assert not legacy.exists()
    assert (tmp_path / "settings.json.bak").exists()
    store.close()


def test_open_store_falls_back_to_json(tmp_path: Path) -> None:
    config = ConfigManager(data_dir=str(tmp_path), settings=EnvSettings())
    os.makedirs(config.db_file)  # a directory cannot be opened as a database

    store = open_store(config)

    assert store.backend_name == "json"
    assert store.set(Slot.LAST_FOLDER, "/lib")
    assert json.loads(Path(config.json_file).read_text(encoding="utf-8"))["lastFolder"] == "/lib"


def test_open_store_prefers_sqlite(tmp_path: Path) -> None:
    config = ConfigManager(data_dir=str(tmp_path), settings=EnvSettings())
    store = open_store(config)
    assert store.backend_name == "sqlite"
    store.close()
