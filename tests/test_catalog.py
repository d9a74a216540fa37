"""Tests for catalog entries, loading and filesystem attributes."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import pytest

from vidstamp.catalog import (
    AttributeWriteError,
    CatalogLoader,
    FileCatalogEntry,
    FilesystemReadError,
    format_size,
    read_creation_time,
    write_timestamps,
)
from vidstamp.catalog import loader as loader_module
from vidstamp.metadata import ProbeToolError, canonical_display
from vidstamp.tools import ToolNotFoundError

FIXED_CREATION = datetime(2024, 3, 1, 10, 0, 0).astimezone()


class _StaticProbe:
    def __init__(self, dates: dict[str, Optional[str]], failing: set[str] | None = None) -> None:
        self.dates = dates
        self.failing = failing or set()

    def probe(self, path: Path) -> Optional[str]:
        if path.name in self.failing:
            raise ProbeToolError(path, "ffprobe exited with status 1", exit_code=1)
        return self.dates.get(path.name)


class _MissingToolProbe:
    def probe(self, path: Path) -> Optional[str]:
        raise ToolNotFoundError("ffprobe")


def _fixed_creation(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(loader_module, "read_creation_time", lambda path, fallback: FIXED_CREATION)


def test_needs_update_when_encoded_date_missing() -> None:
    entry = FileCatalogEntry(path=Path("a.mp4"), creation_date="2024-03-01 - 10:00:00")

    assert entry.needs_update is True
    assert entry.dates_match is False


def test_equal_canonical_strings_do_not_need_update() -> None:
    encoded = canonical_display("2024-03-01 10:00:00")
    entry = FileCatalogEntry(
        path=Path("a.mp4"), creation_date="2024-03-01 - 10:00:00", encoded_date=encoded
    )

    assert entry.needs_update is False
    assert entry.model_dump()["needs_update"] is False


def test_different_canonical_strings_need_update() -> None:
    entry = FileCatalogEntry(
        path=Path("a.mp4"),
        creation_date="2024-03-01 - 10:00:00",
        encoded_date="2024-03-01 - 10:00:01",
    )

    assert entry.needs_update is True


def test_loader_builds_entry(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _fixed_creation(monkeypatch)
    video = tmp_path / "clip.mov"
    video.write_bytes(b"data")

    loader = CatalogLoader(_StaticProbe({"clip.mov": "2024-03-01 - 10:00:00"}))
    entry = loader.load(video)

    assert entry.path == video
    assert entry.creation_date == "2024-03-01 - 10:00:00"
    assert entry.needs_update is False


def test_loader_without_encoded_date(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _fixed_creation(monkeypatch)
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"data")

    entry = CatalogLoader(_StaticProbe({})).load(video)

    assert entry.encoded_date is None
    assert entry.needs_update is True


def test_load_many_collects_per_file_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    good = tmp_path / "good.mp4"
    good.write_bytes(b"1")
    broken = tmp_path / "broken.mp4"
    broken.write_bytes(b"2")
    missing = tmp_path / "missing.mp4"

    loader = CatalogLoader(_StaticProbe({"good.mp4": None}, failing={"broken.mp4"}))
    result = loader.load_many([good, broken, missing])

    assert [entry.path for entry in result.entries] == [good]
    assert len(result.errors) == 2
    assert any("broken.mp4" in message for message in result.errors)
    assert any("missing.mp4" in message for message in result.errors)


def test_load_many_propagates_missing_tool(tmp_path: Path) -> None:
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"1")

    with pytest.raises(ToolNotFoundError):
        CatalogLoader(_MissingToolProbe()).load_many([video])


def test_read_creation_time_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FilesystemReadError):
        read_creation_time(tmp_path / "absent.mp4")


@pytest.mark.skipif(hasattr(os.stat("."), "st_birthtime"), reason="platform reports birth time")
def test_read_creation_time_falls_back_to_mtime(tmp_path: Path) -> None:
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"1")
    stamp = datetime(2020, 6, 1, 12, 0, 0).timestamp()
    os.utime(video, (stamp, stamp))

    assert read_creation_time(video, "mtime").timestamp() == stamp
    assert read_creation_time(video, "now").timestamp() > stamp


def test_write_timestamps_sets_modification_time(tmp_path: Path) -> None:
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"1")

    write_timestamps(video, FIXED_CREATION)

    assert video.stat().st_mtime == pytest.approx(FIXED_CREATION.timestamp())


def test_write_timestamps_failure_raises(tmp_path: Path) -> None:
    with pytest.raises(AttributeWriteError):
        write_timestamps(tmp_path / "absent.mp4", FIXED_CREATION)


@pytest.mark.parametrize(
    ("size", "label"),
    [(0, "Zero KB"), (512, "0.5 KB"), (2048, "2.0 KB"), (5 * 1024**2, "5.0 MB"), (3 * 1024**3, "3.0 GB")],
)
def test_format_size(size: int, label: str) -> None:
    assert format_size(size) == label
