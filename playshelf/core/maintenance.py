import os
import re
from typing import Iterable
from ..config import THUMB_EXTENSION, log
from ..scanner.path_classifier import asset_key

_KEYED_NAME = re.compile(r"^[0-9a-f]{32}" + re.escape(THUMB_EXTENSION) + r"$")
_TEMP_NAME = re.compile(r"^\.[0-9a-f]{32}\.[0-9a-f]+\.tmp" + re.escape(THUMB_EXTENSION) + r"$")


def is_safe_to_delete(path: str, expected_parent: str) -> bool:
    """Strict check to ensure the file is where we expect and named like a cache entry."""
    abs_path = os.path.abspath(path)
    abs_parent = os.path.abspath(expected_parent)

    if os.path.dirname(abs_path) != abs_parent:
        return False

    filename = os.path.basename(abs_path)
    return bool(_KEYED_NAME.match(filename) or _TEMP_NAME.match(filename))


def purge_thumbnails(thumb_dir: str) -> int:
    """Deletes every cached thumbnail. Returns the number of files removed."""
    log("🧹 Purging thumbnails...")
    count = 0
    if os.path.isdir(thumb_dir):
        for filename in os.listdir(thumb_dir):
            file_path = os.path.join(thumb_dir, filename)
            if not is_safe_to_delete(file_path, thumb_dir):
                log(f"  ⚠️ [Safety] Skipping unexpected file: {filename}")
                continue
            try:
                os.remove(file_path)
                count += 1
            except OSError as e:
                log(f"  [Error] Failed to delete {file_path}: {e}")
    log(f"✅ Thumbnails purge complete. Removed {count} files.")
    return count


def purge_broken_thumbnails(thumb_dir: str) -> int:
    """Removes zero-byte thumbnails and temp files left by interrupted generations."""
    removed_count = 0
    if not os.path.isdir(thumb_dir):
        return 0
    for filename in os.listdir(thumb_dir):
        file_path = os.path.join(thumb_dir, filename)
        if not is_safe_to_delete(file_path, thumb_dir):
            continue
        try:
            if _TEMP_NAME.match(filename) or os.path.getsize(file_path) == 0:
                os.remove(file_path)
                removed_count += 1
        except OSError:
            continue
    if removed_count > 0:
        log(f"🧹 Cleaned up {removed_count} failed thumbnail generation(s)")
    return removed_count


def cleanup_orphans(thumb_dir: str, video_paths: Iterable[str]) -> int:
    """Removes thumbnails whose source path is not in `video_paths`."""
    log("🧹 Cleaning up orphan thumbnails...")
    valid = {asset_key(p) + THUMB_EXTENSION for p in video_paths}

    removed_count = 0
    if os.path.isdir(thumb_dir):
        for filename in os.listdir(thumb_dir):
            file_path = os.path.join(thumb_dir, filename)
            if not is_safe_to_delete(file_path, thumb_dir) or filename in valid:
                continue
            try:
                os.remove(file_path)
                removed_count += 1
            except OSError:
                pass

    log(f"✅ Cleanup complete. Removed {removed_count} orphan files.")
    return removed_count
