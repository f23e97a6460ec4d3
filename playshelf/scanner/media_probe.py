import json
import math
import asyncio
import os
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..models.results import ToolResult, ToolErrorKind, ToolStatus


async def _run_tool(cmd: List[str]) -> Tuple[int, str, str]:
    """
    Runs an external binary without blocking the event loop.
    Raises OSError when the executable cannot be started, ValueError on
    arguments the OS rejects (embedded NUL).
    """
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    out, err = await proc.communicate()
    return (
        proc.returncode,
        out.decode("utf-8", errors="replace"),
        err.decode("utf-8", errors="replace"),
    )


def parse_duration(data: Dict[str, Any]) -> Optional[float]:
    """
    Picks a duration out of ffprobe JSON: format.duration first, then the
    first video stream's duration.
    """
    candidates = [(data.get("format") or {}).get("duration")]
    for stream in data.get("streams") or []:
        if stream.get("codec_type") == "video":
            candidates.append(stream.get("duration"))
            break
    for raw in candidates:
        try:
            value = float(raw)
        except (TypeError, ValueError):
            continue
        if math.isfinite(value):
            return value
    return None


class MediaProbe:
    """
    Asynchronous wrapper for FFprobe / FFmpeg.

    Tool locations are resolved on every call through `resolve_paths`, so a
    settings change (custom binary paths) applies without rebuilding the probe.
    """
    def __init__(self, resolve_paths: Optional[Callable[[], Tuple[str, str]]] = None):
        self._resolve_paths = resolve_paths or (lambda: ("ffmpeg", "ffprobe"))

    @property
    def ffmpeg(self) -> str:
        return self._resolve_paths()[0]

    @property
    def ffprobe(self) -> str:
        return self._resolve_paths()[1]

    async def probe_duration(self, filepath: str) -> ToolResult:
        cmd = [
            self.ffprobe,
            "-v", "error",
            "-show_entries", "format=duration:stream=codec_type,duration",
            "-of", "json",
            filepath,
        ]
        try:
            code, out, err = await _run_tool(cmd)
        except (OSError, ValueError) as e:
            return ToolResult.failure(ToolErrorKind.TOOL_MISSING, str(e))

        if code != 0:
            return ToolResult.failure(ToolErrorKind.TOOL_FAILED, err.strip())

        try:
            data = json.loads(out or "{}")
        except json.JSONDecodeError as e:
            return ToolResult.failure(ToolErrorKind.BAD_OUTPUT, str(e))

        duration = parse_duration(data) if isinstance(data, dict) else None
        if duration is None:
            return ToolResult.failure(ToolErrorKind.BAD_OUTPUT, "no duration in probe output")
        return ToolResult.success(duration)

    async def extract_frame(
        self, filepath: str, offset_sec: float, width: int, output_path: str
    ) -> ToolResult:
        # scale: fixed width, height follows the aspect ratio (kept even for jpeg)
        cmd = [
            self.ffmpeg,
            "-ss", f"{max(0.0, offset_sec):.3f}",
            "-i", filepath,
            "-frames:v", "1",
            "-q:v", "4",
            "-vf", f"scale={width}:-2",
            "-f", "image2",
            "-y",
            "-loglevel", "error",
            output_path,
        ]
        try:
            code, _, err = await _run_tool(cmd)
        except (OSError, ValueError) as e:
            return ToolResult.failure(ToolErrorKind.TOOL_MISSING, str(e))

        if code != 0:
            return ToolResult.failure(ToolErrorKind.TOOL_FAILED, err.strip())
        if not os.path.exists(output_path) or os.path.getsize(output_path) == 0:
            return ToolResult.failure(ToolErrorKind.TOOL_FAILED, "no frame written")
        return ToolResult.success(output_path)

    async def check_tools(self) -> ToolStatus:
        """Runs `-version` on both binaries and reports what is reachable."""
        async def _version(binary: str) -> Tuple[bool, Optional[str]]:
            try:
                code, _, err = await _run_tool([binary, "-version"])
            except (OSError, ValueError) as e:
                return False, str(e)
            if code != 0:
                return False, err.strip() or f"exit code {code}"
            return True, None

        (ff_ok, ff_err), (fp_ok, fp_err) = await asyncio.gather(
            _version(self.ffmpeg), _version(self.ffprobe)
        )
        return ToolStatus(
            ffmpeg_ok=ff_ok,
            ffprobe_ok=fp_ok,
            ffmpeg_error=ff_err,
            ffprobe_error=fp_err,
        )
