from typing import Iterable, List, Optional

from ..config import log
from ..models.category import Category, CategoryItem
from .schema import Slot
from .store import Store


class CategoryRepository:
    """
    Category CRUD over the `categories` slot.

    Every mutation is a whole-document read-modify-write of the slot; there is
    no protection against two interleaved writers (last write wins).
    """
    def __init__(self, store: Store):
        self.store = store

    def list(self) -> List[Category]:
        categories = []
        for raw in self.store.get(Slot.CATEGORIES):
            try:
                categories.append(Category(**raw))
            except Exception as e:
                log(f"⚠️ Skipping corrupted category entry: {e}")
        return categories

    def get(self, category_id: str) -> Optional[Category]:
        for category in self.list():
            if category.id == category_id:
                return category
        return None

    def _save(self, categories: List[Category]) -> bool:
        return self.store.set(
            Slot.CATEGORIES,
            [c.model_dump(by_alias=True) for c in categories],
        )

    def create(self, name: str) -> Optional[Category]:
        """New empty category with a fresh id; None for a blank name or failed write."""
        name = (name or "").strip()
        if not name:
            return None
        categories = self.list()
        existing_ids = {c.id for c in categories}
        category = Category(name=name)
        while category.id in existing_ids:
            category = Category(name=name)
        categories.append(category)
        if not self._save(categories):
            return None
        return category

    def rename(self, category_id: str, name: str) -> bool:
        name = (name or "").strip()
        if not name:
            return False
        categories = self.list()
        for category in categories:
            if category.id == category_id:
                category.name = name
                return self._save(categories)
        return False

    def delete(self, category_id: str) -> bool:
        """Removes the category; its member paths are left untouched elsewhere."""
        categories = self.list()
        remaining = [c for c in categories if c.id != category_id]
        if len(remaining) == len(categories):
            return False
        if not self._save(remaining):
            return False

        covers = self.store.get(Slot.CATEGORY_COVERS)
        if category_id in covers:
            del covers[category_id]
            self.store.set(Slot.CATEGORY_COVERS, covers)
        return True

    def add_items(self, category_id: str, items: Iterable[CategoryItem]) -> bool:
        """Appends members not already present, de-duplicated by (kind, path)."""
        try:
            incoming = [_as_item(item) for item in items]
        except (TypeError, ValueError) as e:
            log(f"⚠️ Rejected category items: {e}")
            return False
        categories = self.list()
        for category in categories:
            if category.id != category_id:
                continue
            seen = {existing.identity for existing in category.items}
            for item in incoming:
                if item.identity in seen:
                    continue
                seen.add(item.identity)
                category.items.append(item)
            return self._save(categories)
        return False

    def remove_item(self, category_id: str, item: CategoryItem) -> bool:
        """Removes the exact (kind, path) member. Absent members are a no-op."""
        try:
            item = _as_item(item)
        except (TypeError, ValueError):
            return False
        categories = self.list()
        for category in categories:
            if category.id != category_id:
                continue
            kept = [m for m in category.items if m.identity != item.identity]
            if len(kept) == len(category.items):
                return True
            category.items = kept
            return self._save(categories)
        return False


def _as_item(item) -> CategoryItem:
    if isinstance(item, CategoryItem):
        return item
    return CategoryItem(**item)
