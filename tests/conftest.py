"""Shared fixtures: quiet logging, a stand-in for ffprobe/ffmpeg and a wired Library."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import pytest

from playshelf.config import ConfigManager, EnvSettings
from playshelf.core.library import Library
from playshelf.database.store import MemoryBackend, Store
from playshelf.models.results import ToolErrorKind, ToolResult, ToolStatus

FIXED_NOW = datetime(2024, 5, 10, 12, 0, 0)


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLAYSHELF_QUIET", "1")
    for var in ("PLAYSHELF_DATA_DIR", "PLAYSHELF_CACHE_DIR", "CONFIG_DIR", "CACHE_DIR"):
        monkeypatch.delenv(var, raising=False)


class FakeTools:
    """Records calls; writes a few bytes as the 'frame'."""

    def __init__(
        self,
        durations: Optional[Dict[str, float]] = None,
        fail_extract: bool = False,
        extract_delay: float = 0.0,
    ) -> None:
        self.durations = durations or {}
        self.fail_extract = fail_extract
        self.extract_delay = extract_delay
        self.probe_calls: List[str] = []
        self.extract_calls: List[Tuple[str, float, int, str]] = []

    async def probe_duration(self, filepath: str) -> ToolResult:
        self.probe_calls.append(filepath)
        if filepath not in self.durations:
            return ToolResult.failure(ToolErrorKind.BAD_OUTPUT, "not a video")
        return ToolResult.success(self.durations[filepath])

    async def extract_frame(
        self, filepath: str, offset_sec: float, width: int, output_path: str
    ) -> ToolResult:
        self.extract_calls.append((filepath, offset_sec, width, output_path))
        if self.extract_delay:
            await asyncio.sleep(self.extract_delay)
        # Partial output either way; the cache must not keep it on failure.
        Path(output_path).write_bytes(b"\xff\xd8\xff\xe0frame")
        if self.fail_extract:
            return ToolResult.failure(ToolErrorKind.TOOL_FAILED, "decoder error")
        return ToolResult.success(output_path)

    async def check_tools(self) -> ToolStatus:
        return ToolStatus(ffmpeg_ok=True, ffprobe_ok=True)


@pytest.fixture
def fake_tools() -> FakeTools:
    return FakeTools()


@pytest.fixture
def config(tmp_path: Path) -> ConfigManager:
    cfg = ConfigManager(data_dir=str(tmp_path / "data"), settings=EnvSettings())
    cfg.ensure_directories()
    return cfg


@pytest.fixture
def library(config: ConfigManager, fake_tools: FakeTools) -> Iterator[Library]:
    lib = Library(config, Store(MemoryBackend()), probe=fake_tools, clock=lambda: FIXED_NOW)
    yield lib
    lib.close()
