from typing import Optional
from urllib.parse import quote
from pydantic import BaseModel, Field


class VideoFile(BaseModel):
    """
    One discovered video in a scan snapshot.
    Not persisted; duration and thumb are filled in lazily by the asset cache.
    """
    path: str = Field(..., description="Absolute path to the video file")
    name: str = Field(..., description="File name without extension")
    size: int = Field(0, description="File size in bytes")
    mtime: float = Field(0.0, description="Last modification time (ms since epoch)")
    ext: str = Field("", description="Lowercase extension without the dot")

    duration: Optional[int] = Field(None, description="Duration in whole seconds")
    thumb: Optional[str] = Field(None, description="file:// URI of the cached thumbnail")

    class Config:
        extra = "ignore"


class FolderEntry(BaseModel):
    """A subdirectory under a scanned root."""
    path: str
    name: str
    mtime: float = 0.0


class DerivedAsset(BaseModel):
    """Cached {duration, thumbnail} record for a video path."""
    key: str = Field(..., description="md5 hex digest of the absolute path")
    duration: Optional[int] = Field(None, description="Duration in whole seconds")
    thumb_path: Optional[str] = Field(None, description="Thumbnail file on disk")

    @property
    def thumb_url(self) -> Optional[str]:
        if not self.thumb_path:
            return None
        return file_uri(self.thumb_path)


def file_uri(path: str) -> str:
    """file:/// URI for a local path, percent-encoded like the player expects."""
    normalized = path.replace("\\", "/")
    return "file:///" + quote(normalized.lstrip("/"), safe="/:")

