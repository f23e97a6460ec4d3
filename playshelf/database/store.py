import copy
import json
import sqlite3
from typing import Any, Dict, Optional, Protocol

from ..config import ConfigManager, log
from .json_store import JSONStore
from .schema import Slot, coerce, default_for
from .sqlite_store import SQLiteStore


class StoreBackend(Protocol):
    name: str

    def load_all(self) -> Dict[str, Any]:
        ...

    def write(self, key: str, value: Any) -> None:
        ...

    def close(self) -> None:
        ...


class MemoryBackend:
    """Non-durable backend for tests and throwaway sessions."""
    name = "memory"

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = copy.deepcopy(initial or {})

    def load_all(self) -> Dict[str, Any]:
        return copy.deepcopy(self.data)

    def write(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)

    def close(self) -> None:
        pass


class Store:
    """
    Typed key-value map over the fixed slot schema.

    Reads are served from an in-memory copy that is only updated after the
    backend accepted the write, so a read always observes the last successful
    write of this process. Values are deep-copied in and out: mutate, then set.

    Writes replace a whole slot. Two interleaved read-modify-write cycles on
    the same slot are last-write-wins.
    """
    def __init__(self, backend: StoreBackend):
        self.backend = backend
        try:
            self._cache: Dict[str, Any] = backend.load_all()
        except Exception as e:
            log(f"❌ Error loading store ({backend.name}): {e}")
            self._cache = {}

    @property
    def backend_name(self) -> str:
        return self.backend.name

    def get(self, slot: Slot) -> Any:
        """Slot value, or the slot's neutral default when missing or malformed."""
        slot = Slot(slot)
        return copy.deepcopy(coerce(slot, self._cache.get(slot.value)))

    def set(self, slot: Slot, value: Any) -> bool:
        """Persists a slot. Returns False (and changes nothing) on failure."""
        slot = Slot(slot)
        try:
            # Round-trip through JSON: rejects unserialisable values up front
            # and detaches the stored copy from the caller's object.
            snapshot = json.loads(json.dumps(value))
            self.backend.write(slot.value, snapshot)
        except Exception as e:
            log(f"❌ Error saving {slot.value}: {e}")
            return False
        self._cache[slot.value] = snapshot
        return True

    def reset(self, slot: Slot) -> bool:
        return self.set(slot, default_for(Slot(slot)))

    def close(self) -> None:
        try:
            self.backend.close()
        except Exception as e:
            log(f"⚠️ Error closing store: {e}")


def open_store(config: ConfigManager) -> Store:
    """
    SQLite primary backend; falls back to the JSON file when SQLite cannot be
    opened (read-only location, missing sqlite module build, locked file).
    """
    try:
        backend: StoreBackend = SQLiteStore(config.db_file, legacy_json_file=config.json_file)
    except (sqlite3.Error, OSError) as e:
        log(f"⚠️ SQLite store unavailable ({e}); using {config.json_file}")
        backend = JSONStore(config.json_file)
    return Store(backend)
