from __future__ import annotations

import asyncio
import os
from pathlib import Path

from conftest import FakeTools

from playshelf.core.asset_cache import DerivedAssetCache
from playshelf.scanner.path_classifier import asset_key

VIDEO = "/lib/movie.mp4"


def _cache(tmp_path: Path, tools: FakeTools, **kwargs) -> DerivedAssetCache:
    return DerivedAssetCache(str(tmp_path / "thumbs"), probe=tools, extractor=tools, **kwargs)


def test_second_call_reuses_cached_thumbnail(tmp_path: Path) -> None:
    tools = FakeTools(durations={VIDEO: 200.4})
    cache = _cache(tmp_path, tools)

    first = asyncio.run(cache.get_or_create(VIDEO))
    second = asyncio.run(cache.get_or_create(VIDEO))

    expected = str(tmp_path / "thumbs" / (asset_key(VIDEO) + ".jpg"))
    assert first.thumb_path == expected == second.thumb_path
    assert first.duration == 200 and second.duration == 200
    assert first.key == asset_key(VIDEO)
    assert first.thumb_url.startswith("file:///")
    assert len(tools.extract_calls) == 1
    assert len(tools.probe_calls) == 2


def test_frame_is_taken_at_five_percent_with_fixed_width(tmp_path: Path) -> None:
    tools = FakeTools(durations={VIDEO: 200})
    asyncio.run(_cache(tmp_path, tools).get_or_create(VIDEO))

    _, offset, width, output = tools.extract_calls[0]
    assert offset == 10.0
    assert width == 640
    assert os.path.dirname(output) == str(tmp_path / "thumbs")


def test_duration_rounds_half_up(tmp_path: Path) -> None:
    tools = FakeTools(durations={VIDEO: 12.5})
    asset = asyncio.run(_cache(tmp_path, tools).get_or_create(VIDEO))
    assert asset.duration == 13


def test_probe_failure_leaves_duration_absent(tmp_path: Path) -> None:
    tools = FakeTools()
    asset = asyncio.run(_cache(tmp_path, tools).get_or_create(VIDEO))

    assert asset.duration is None
    assert asset.thumb_path is not None
    assert tools.extract_calls[0][1] == 0


def test_probe_exception_is_contained(tmp_path: Path) -> None:
    class ExplodingProbe(FakeTools):
        async def probe_duration(self, filepath: str):
            raise RuntimeError("boom")

    tools = ExplodingProbe()
    asset = asyncio.run(_cache(tmp_path, tools).get_or_create(VIDEO))
    assert asset.duration is None


def test_failed_extraction_leaves_no_file_behind(tmp_path: Path) -> None:
    tools = FakeTools(durations={VIDEO: 60}, fail_extract=True)
    cache = _cache(tmp_path, tools)

    asset = asyncio.run(cache.get_or_create(VIDEO))

    assert asset.duration == 60
    assert asset.thumb_path is None
    assert asset.thumb_url is None
    assert os.listdir(tmp_path / "thumbs") == []


def test_empty_existing_thumbnail_is_regenerated(tmp_path: Path) -> None:
    tools = FakeTools(durations={VIDEO: 60})
    cache = _cache(tmp_path, tools)
    os.makedirs(cache.thumb_dir)
    Path(cache.thumb_path_for(VIDEO)).write_bytes(b"")

    asset = asyncio.run(cache.get_or_create(VIDEO))

    assert len(tools.extract_calls) == 1
    assert os.path.getsize(asset.thumb_path) > 0


def test_concurrent_requests_share_one_extraction(tmp_path: Path) -> None:
    tools = FakeTools(durations={VIDEO: 100}, extract_delay=0.05)
    cache = _cache(tmp_path, tools)

    async def _burst():
        return await asyncio.gather(*(cache.get_or_create(VIDEO) for _ in range(4)))

    assets = asyncio.run(_burst())

    assert len(tools.extract_calls) == 1
    assert {a.thumb_path for a in assets} == {cache.thumb_path_for(VIDEO)}
    assert cache._inflight == {}


def test_duplicate_generation_allowed_without_dedupe(tmp_path: Path) -> None:
    tools = FakeTools(durations={VIDEO: 100}, extract_delay=0.05)
    cache = _cache(tmp_path, tools, dedupe_in_flight=False)

    async def _burst():
        return await asyncio.gather(*(cache.get_or_create(VIDEO) for _ in range(3)))

    assets = asyncio.run(_burst())

    assert len(tools.extract_calls) == 3
    assert all(a.thumb_path == cache.thumb_path_for(VIDEO) for a in assets)
    assert os.listdir(cache.thumb_dir) == [asset_key(VIDEO) + ".jpg"]
