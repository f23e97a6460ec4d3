import os
import asyncio
from typing import List, Optional
from ..config import DEFAULT_SCAN_DEPTH, DEFAULT_SCAN_RECURSIVE
from ..models.media import VideoFile, FolderEntry
from .path_classifier import is_eligible_video, display_name


class AsyncFileSystem:
    """
    Point-in-time directory snapshots.

    All blocking calls (listdir/stat) are offloaded with asyncio.to_thread so a
    long scan never blocks the event loop. Per-entry failures are swallowed:
    one unreadable file or directory never fails the whole scan.
    """

    async def scan(
        self,
        root: str,
        recursive: bool = DEFAULT_SCAN_RECURSIVE,
        max_depth: int = DEFAULT_SCAN_DEPTH,
    ) -> List[VideoFile]:
        """
        Returns eligible videos under `root`, most recently modified first.

        A subdirectory found at depth d is only entered while recursive and
        d < max_depth. An unreadable or missing root yields [] just like an
        empty one.
        """
        if not root:
            return []
        results: List[VideoFile] = []
        await self._walk(root, 0, recursive, max_depth, results)
        results.sort(key=lambda v: v.mtime, reverse=True)
        return results

    async def _walk(
        self,
        current: str,
        depth: int,
        recursive: bool,
        max_depth: int,
        results: List[VideoFile],
    ) -> None:
        try:
            entries = await asyncio.to_thread(_list_entries, current)
        except OSError:
            return

        subdirs = []
        candidates = []
        for entry in entries:
            try:
                if entry.is_dir():
                    subdirs.append(entry.path)
                elif is_eligible_video(entry.name):
                    candidates.append(entry)
            except OSError:
                continue

        # Stats are independent per entry; merge after they all settle.
        items = await asyncio.gather(*(self._stat_video(e.path, e.name) for e in candidates))
        results.extend(item for item in items if item is not None)

        if recursive and depth < max_depth:
            for sub in subdirs:
                await self._walk(sub, depth + 1, recursive, max_depth, results)

    async def _stat_video(self, path: str, name: str) -> Optional[VideoFile]:
        try:
            st = await asyncio.to_thread(os.stat, path)
        except OSError:
            return None
        ext = os.path.splitext(name)[1].lstrip(".").lower()
        return VideoFile(
            path=path,
            name=display_name(name),
            size=st.st_size,
            mtime=st.st_mtime * 1000,
            ext=ext,
        )

    async def list_folders(self, root: str) -> List[FolderEntry]:
        """Single-level listing of subdirectories, newest first."""
        if not root:
            return []
        try:
            entries = await asyncio.to_thread(_list_entries, root)
        except OSError:
            return []

        async def _folder(entry: os.DirEntry) -> Optional[FolderEntry]:
            try:
                if not entry.is_dir():
                    return None
                st = await asyncio.to_thread(os.stat, entry.path)
            except OSError:
                return None
            return FolderEntry(path=entry.path, name=entry.name, mtime=st.st_mtime * 1000)

        folders = [f for f in await asyncio.gather(*(_folder(e) for e in entries)) if f]
        folders.sort(key=lambda f: f.mtime, reverse=True)
        return folders

    async def get_video_item(self, path: str) -> Optional[VideoFile]:
        """Resolves a single (possibly dangling) video reference."""
        if not path or not is_eligible_video(path):
            return None
        try:
            is_file = await asyncio.to_thread(os.path.isfile, path)
        except OSError:
            return None
        if not is_file:
            return None
        return await self._stat_video(path, os.path.basename(path))

    async def get_folder_item(self, path: str) -> Optional[FolderEntry]:
        """Resolves a single (possibly dangling) folder reference."""
        if not path:
            return None
        try:
            st = await asyncio.to_thread(os.stat, path)
        except OSError:
            return None
        if not os.path.isdir(path):
            return None
        name = os.path.basename(os.path.normpath(path)) or path
        return FolderEntry(path=path, name=name, mtime=st.st_mtime * 1000)


def _list_entries(path: str) -> List[os.DirEntry]:
    with os.scandir(path) as it:
        return list(it)
