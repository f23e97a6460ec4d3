from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel


class ToolErrorKind(str, Enum):
    TOOL_MISSING = "tool_missing"
    TOOL_FAILED = "tool_failed"
    BAD_OUTPUT = "bad_output"
    INVALID_IMAGE = "invalid_image"
    IO_ERROR = "io_error"
    NOT_FOUND = "not_found"


class ToolResult(BaseModel):
    """
    Outcome of an external-tool or file operation.
    Either ok with a value, or an error kind with an optional message.
    """
    ok: bool
    value: Any = None
    error: Optional[ToolErrorKind] = None
    message: str = ""

    @classmethod
    def success(cls, value: Any = None) -> "ToolResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ToolErrorKind, message: str = "") -> "ToolResult":
        return cls(ok=False, error=error, message=message)


class ToolStatus(BaseModel):
    """Availability of the two external binaries."""
    ffmpeg_ok: bool = False
    ffprobe_ok: bool = False
    ffmpeg_error: Optional[str] = None
    ffprobe_error: Optional[str] = None
