import asyncio
import os
from typing import Dict

from PIL import Image, UnidentifiedImageError

from ..config import COVER_SIZE, log
from ..database.schema import Slot
from ..database.store import Store
from ..models.media import file_uri
from ..models.results import ToolErrorKind, ToolResult
from ..scanner.path_classifier import asset_key


def _render_cover(source: str, target: str) -> None:
    """Fit `source` into COVER_SIZE (aspect preserved) and save as JPEG at `target`."""
    with Image.open(source) as img:
        img = img.convert("RGB")
        img.thumbnail(COVER_SIZE)
        tmp = target + ".tmp"
        try:
            img.save(tmp, "JPEG", quality=85)
            os.replace(tmp, target)
        finally:
            if os.path.exists(tmp):
                os.remove(tmp)


class CoverManager:
    """
    Custom cover images for folders (keyed by path) and categories (keyed by id).
    The chosen image is copied into the covers directory so the source file
    can move or disappear without breaking the cover.
    """
    def __init__(self, store: Store, covers_dir: str):
        self.store = store
        self.covers_dir = covers_dir

    async def _set_cover(self, slot: Slot, owner: str, image_path: str) -> ToolResult:
        if not owner or not image_path:
            return ToolResult.failure(ToolErrorKind.INVALID_IMAGE, "missing owner or image")

        prefix = "folder_" if slot == Slot.FOLDER_COVERS else "category_"
        target = os.path.join(self.covers_dir, f"{prefix}{asset_key(owner)}.jpg")
        try:
            await asyncio.to_thread(os.makedirs, self.covers_dir, exist_ok=True)
            await asyncio.to_thread(_render_cover, image_path, target)
        except (UnidentifiedImageError, Image.DecompressionBombError) as e:
            return ToolResult.failure(ToolErrorKind.INVALID_IMAGE, str(e))
        except (OSError, ValueError) as e:
            log(f"⚠️ Cover failed for {owner}: {e}")
            return ToolResult.failure(ToolErrorKind.IO_ERROR, str(e))

        url = file_uri(target)
        covers = self.store.get(slot)
        covers[owner] = url
        if not self.store.set(slot, covers):
            return ToolResult.failure(ToolErrorKind.IO_ERROR, "could not save cover")
        return ToolResult.success(url)

    def _clear_cover(self, slot: Slot, owner: str) -> bool:
        covers = self.store.get(slot)
        if owner not in covers:
            return True
        del covers[owner]
        return self.store.set(slot, covers)

    # Folders

    def get_folder_covers(self) -> Dict[str, str]:
        return self.store.get(Slot.FOLDER_COVERS)

    async def set_folder_cover(self, folder_path: str, image_path: str) -> ToolResult:
        return await self._set_cover(Slot.FOLDER_COVERS, folder_path, image_path)

    def clear_folder_cover(self, folder_path: str) -> bool:
        return self._clear_cover(Slot.FOLDER_COVERS, folder_path)

    # Categories

    def get_category_covers(self) -> Dict[str, str]:
        return self.store.get(Slot.CATEGORY_COVERS)

    async def set_category_cover(self, category_id: str, image_path: str) -> ToolResult:
        return await self._set_cover(Slot.CATEGORY_COVERS, category_id, image_path)

    def clear_category_cover(self, category_id: str) -> bool:
        return self._clear_cover(Slot.CATEGORY_COVERS, category_id)
