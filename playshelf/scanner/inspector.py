from typing import Protocol
from ..models.results import ToolResult


class DurationProbe(Protocol):
    """
    Protocol for the duration tool (ffprobe).
    Implementations must never raise; failures come back as ToolResult errors.
    """

    async def probe_duration(self, filepath: str) -> ToolResult:
        """ok -> value is the duration in float seconds."""
        ...


class FrameExtractor(Protocol):
    """
    Protocol for the frame tool (ffmpeg).
    """

    async def extract_frame(
        self, filepath: str, offset_sec: float, width: int, output_path: str
    ) -> ToolResult:
        """Write exactly one frame to output_path. ok -> value is output_path."""
        ...
