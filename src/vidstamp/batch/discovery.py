"""Expand user-supplied paths into the video files to select."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

from .models import is_video_file


def _is_hidden(path: Path) -> bool:
    return any(part.startswith(".") for part in path.parts if part not in (".", ".."))


class VideoScanner:
    """Yield video files from explicit files and directories."""

    def __init__(self, *, recursive: bool = False, include_hidden: bool = False) -> None:
        self.recursive = recursive
        self.include_hidden = include_hidden

    def scan(self, paths: Iterable[Path]) -> Iterator[Path]:
        """Yield absolute video paths in argument order; directory contents are sorted.

        Explicit files are yielded when their extension is recognized; directories
        are expanded (recursively when enabled), skipping hidden entries.
        """
        for raw in paths:
            path = raw.expanduser().resolve()
            if path.is_file():
                if is_video_file(path):
                    yield path
                continue
            if not path.is_dir():
                continue
            candidates = path.rglob("*") if self.recursive else path.iterdir()
            for candidate in sorted(candidates):
                if not candidate.is_file() or not is_video_file(candidate):
                    continue
                if not self.include_hidden and _is_hidden(candidate.relative_to(path)):
                    continue
                yield candidate


__all__ = ["VideoScanner"]
