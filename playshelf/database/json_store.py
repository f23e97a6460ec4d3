import json
import os
import shutil
import tempfile
from typing import Any, Dict

from ..config import log


class JSONStore:
    """
    Fallback backend: the whole document lives in one JSON file.
    Every write rewrites the file using the atomic temp-file + rename pattern.
    """
    name = "json"

    def __init__(self, json_file: str):
        self.json_file = json_file
        self._data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Loads the document from disk; a missing or corrupt file reads as empty."""
        self._data = {}
        if not os.path.exists(self.json_file):
            return
        try:
            with open(self.json_file, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
            if isinstance(raw_data, dict):
                self._data = raw_data
            else:
                log(f"⚠️ Ignoring malformed store file {self.json_file}")
        except (OSError, ValueError) as e:
            log(f"❌ Error loading store: {e}")

    def load_all(self) -> Dict[str, Any]:
        return dict(self._data)

    def write(self, key: str, value: Any) -> None:
        """
        Persists one slot. Raises on failure, leaving the previous file intact.

        Prevents data corruption from:
        - Disk full errors
        - Process crashes during write
        """
        updated = dict(self._data)
        updated[key] = value

        store_dir = os.path.dirname(self.json_file) or "."
        os.makedirs(store_dir, exist_ok=True)

        # Temp file in the same directory keeps the rename on one filesystem
        temp_fd, temp_path = tempfile.mkstemp(
            dir=store_dir,
            prefix=".store_tmp_",
            suffix=".json"
        )
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(updated, f, indent=2, ensure_ascii=False)
            shutil.move(temp_path, self.json_file)
        except Exception:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass
            raise

        self._data = updated

    def close(self) -> None:
        pass
