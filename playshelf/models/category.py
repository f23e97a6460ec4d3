from enum import Enum
from typing import List, Tuple
from pydantic import BaseModel, Field
import uuid


class ItemKind(str, Enum):
    VIDEO = "video"
    FOLDER = "folder"


class CategoryItem(BaseModel):
    """
    A member reference inside a category.
    May dangle: the file or folder is resolved lazily and can be gone.
    """
    kind: ItemKind = Field(..., alias="type")
    path: str

    @property
    def identity(self) -> Tuple[str, str]:
        return (ItemKind(self.kind).value, self.path)

    class Config:
        populate_by_name = True
        use_enum_values = True


class Category(BaseModel):
    """User-defined named collection of videos and folders."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    items: List[CategoryItem] = Field(default_factory=list)

    def contains(self, item: CategoryItem) -> bool:
        return any(existing.identity == item.identity for existing in self.items)

    def covers_path(self, path: str) -> bool:
        """True if a video member equals `path` or a folder member prefixes it."""
        for item in self.items:
            if item.kind == ItemKind.VIDEO.value:
                if item.path == path:
                    return True
            elif path.startswith(item.path):
                return True
        return False
