from typing import Optional
from pydantic import BaseModel, Field


class AppSettings(BaseModel):
    """
    User-editable settings persisted in the `settings` slot.
    Tool paths are optional overrides of the environment defaults.
    """
    enable_hover_previews: bool = Field(True, alias="enableHoverPreviews")
    ffmpeg_path: Optional[str] = Field(None, alias="ffmpegPath")
    ffprobe_path: Optional[str] = Field(None, alias="ffprobePath")

    class Config:
        populate_by_name = True
        extra = "ignore"
