import hashlib
import os
from ..config import VIDEO_EXTENSIONS

_VIDEO_EXTS = frozenset(VIDEO_EXTENSIONS)
_SEPARATORS = ("/", "\\")


def is_eligible_video(name: str) -> bool:
    """True iff the lowercase extension (no dot) is an allowed container format."""
    ext = os.path.splitext(name)[1]
    return ext.lstrip(".").lower() in _VIDEO_EXTS


def asset_key(path: str) -> str:
    """
    Stable content-address for a path: md5 hex of the path string.
    Used as the filename stem of every derived asset of that path.
    """
    return hashlib.md5(path.encode("utf-8")).hexdigest()


def _last_separator(path: str) -> int:
    return max(path.rfind(sep) for sep in _SEPARATORS)


def file_name(path: str) -> str:
    """Final path segment, for either separator style."""
    return path[_last_separator(path) + 1:] or path


def display_name(path: str) -> str:
    return os.path.splitext(file_name(path))[0]


def extension_of(path: str) -> str:
    """Lowercase extension of the final segment; '' when it has none."""
    name = file_name(path)
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def parent_of(path: str) -> str:
    """Substring up to the last separator ('' when there is none)."""
    return path[:max(0, _last_separator(path))]
