"""Resolve the ffmpeg/ffprobe executables used by the pipeline."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Mapping

from vidstamp.config.models import DEFAULT_SEARCH_PATHS, ToolSettings

from .errors import ToolNotFoundError

LOGGER = logging.getLogger(__name__)

FFMPEG = "ffmpeg"
FFPROBE = "ffprobe"


class ToolLocator:
    """Find external executables by override, PATH lookup, then well-known directories."""

    def __init__(
        self,
        search_paths: Iterable[str] | None = None,
        overrides: Mapping[str, str | None] | None = None,
    ) -> None:
        self.search_paths = list(search_paths if search_paths is not None else DEFAULT_SEARCH_PATHS)
        self.overrides = {name: value for name, value in (overrides or {}).items() if value}
        self._cache: dict[str, str] = {}

    @classmethod
    def from_settings(cls, settings: ToolSettings) -> "ToolLocator":
        """Build a locator from the `tools` configuration section."""
        return cls(
            search_paths=settings.search_paths,
            overrides={FFMPEG: settings.ffmpeg_path, FFPROBE: settings.ffprobe_path},
        )

    def locate(self, tool: str) -> str:
        """Return the absolute path of ``tool``.

        Args:
            tool: Executable name such as ``ffprobe``.

        Returns:
            str: Path to an executable file.

        Raises:
            ToolNotFoundError: If no candidate location holds the tool.
        """
        cached = self._cache.get(tool)
        if cached is not None:
            return cached

        searched: list[str] = []
        override = self.overrides.get(tool)
        if override:
            candidate = Path(override).expanduser()
            searched.append(str(candidate))
            if _is_executable(candidate):
                return self._remember(tool, str(candidate))
            LOGGER.warning("Configured %s path %s is not executable; searching elsewhere.", tool, candidate)

        found = shutil.which(tool)
        if found:
            return self._remember(tool, found)
        searched.append("PATH")

        for directory in self.search_paths:
            candidate = Path(directory).expanduser() / tool
            searched.append(str(candidate))
            if _is_executable(candidate):
                return self._remember(tool, str(candidate))

        raise ToolNotFoundError(tool, searched)

    def version(self, tool: str) -> str:
        """Return the first line of ``<tool> -version`` for display purposes."""
        try:
            executable = self.locate(tool)
        except ToolNotFoundError:
            return "Not found"

        try:
            completed = subprocess.run(
                [executable, "-version"],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            LOGGER.debug("Could not query %s version: %s", tool, exc)
            return "Unknown"

        lines = completed.stdout.strip().splitlines()
        return lines[0] if lines else "Unknown"

    def _remember(self, tool: str, path: str) -> str:
        LOGGER.debug("Resolved %s to %s", tool, path)
        self._cache[tool] = path
        return path


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


__all__ = ["FFMPEG", "FFPROBE", "ToolLocator"]
