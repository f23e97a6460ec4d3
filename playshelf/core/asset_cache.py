import asyncio
import math
import os
import uuid
from typing import Dict, Optional

from ..config import THUMB_EXTENSION, THUMB_TIMEMARK_PERCENT, THUMB_WIDTH, log
from ..models.media import DerivedAsset
from ..scanner.inspector import DurationProbe, FrameExtractor
from ..scanner.path_classifier import asset_key


class DerivedAssetCache:
    """
    Maps a video path to its {duration, thumbnail} record.

    The cache key is the existence of <thumb_dir>/<md5(path)>.jpg: once that
    file exists it is never regenerated. Entries are never evicted here.

    Concurrent requests for the same path share one frame extraction unless
    `dedupe_in_flight` is False, in which case duplicate generation is allowed
    (the final rename is atomic, so the last writer simply wins).
    """
    def __init__(
        self,
        thumb_dir: str,
        probe: DurationProbe,
        extractor: FrameExtractor,
        width: int = THUMB_WIDTH,
        timemark_percent: float = THUMB_TIMEMARK_PERCENT,
        dedupe_in_flight: bool = True,
    ):
        self.thumb_dir = thumb_dir
        self.probe = probe
        self.extractor = extractor
        self.width = width
        self.timemark_percent = timemark_percent
        self.dedupe_in_flight = dedupe_in_flight
        self._inflight: Dict[str, asyncio.Task] = {}

    def thumb_path_for(self, path: str) -> str:
        return os.path.join(self.thumb_dir, asset_key(path) + THUMB_EXTENSION)

    def cached_thumb(self, path: str) -> Optional[str]:
        """Existing thumbnail for `path`, without generating anything."""
        thumb = self.thumb_path_for(path)
        try:
            if os.path.getsize(thumb) > 0:
                return thumb
        except OSError:
            pass
        return None

    async def get_or_create(self, path: str) -> DerivedAsset:
        """
        Resolve (or generate) the derived assets of `path`.
        Never raises: a failed probe or extraction leaves that field empty.
        """
        key = asset_key(path)
        duration = await self._probe_duration(path)

        thumb = self.cached_thumb(path)
        if thumb is None:
            thumb = await self._generate_thumbnail(path, duration)

        return DerivedAsset(key=key, duration=duration, thumb_path=thumb)

    async def _probe_duration(self, path: str) -> Optional[int]:
        try:
            result = await self.probe.probe_duration(path)
        except Exception as e:
            log(f"⚠️ Probe crashed for {path}: {e}")
            return None
        if not result.ok:
            return None
        try:
            return math.floor(float(result.value) + 0.5)
        except (TypeError, ValueError, OverflowError):
            return None

    async def _generate_thumbnail(self, path: str, duration: Optional[int]) -> Optional[str]:
        if not self.dedupe_in_flight:
            return await self._extract(path, duration)

        task = self._inflight.get(path)
        if task is None:
            task = asyncio.ensure_future(self._extract(path, duration))
            self._inflight[path] = task
            task.add_done_callback(lambda _t, p=path: self._inflight.pop(p, None))
        return await asyncio.shield(task)

    async def _extract(self, path: str, duration: Optional[int]) -> Optional[str]:
        final_path = self.thumb_path_for(path)
        try:
            await asyncio.to_thread(os.makedirs, self.thumb_dir, exist_ok=True)
        except OSError as e:
            log(f"❌ Cannot create thumbnail dir {self.thumb_dir}: {e}")
            return None

        offset = (duration or 0) * self.timemark_percent / 100.0
        tmp_path = os.path.join(
            self.thumb_dir, f".{asset_key(path)}.{uuid.uuid4().hex}.tmp{THUMB_EXTENSION}"
        )

        try:
            result = await self.extractor.extract_frame(path, offset, self.width, tmp_path)
            if result.ok and _non_empty(tmp_path):
                os.replace(tmp_path, final_path)
                return final_path
            if result.error:
                log(f"⚠️ Thumbnail failed for {os.path.basename(path)}: {result.error.value}")
        except Exception as e:
            log(f"⚠️ Thumbnail failed for {os.path.basename(path)}: {e}")
        finally:
            _discard(tmp_path)

        # A concurrent generation may have finished in the meantime.
        return self.cached_thumb(path)


def _non_empty(path: str) -> bool:
    try:
        return os.path.getsize(path) > 0
    except OSError:
        return False


def _discard(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        pass
