"""Build catalog entries from the filesystem and ffprobe."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Protocol

from vidstamp.metadata import ProbeToolError, format_display

from .attributes import BirthtimeFallback, read_creation_time
from .errors import FilesystemReadError
from .models import CatalogLoadResult, FileCatalogEntry

LOGGER = logging.getLogger(__name__)


class DateProbe(Protocol):
    def probe(self, path: Path) -> Optional[str]: ...


class CatalogLoader:
    """Create `FileCatalogEntry` records for selected videos."""

    def __init__(self, probe: DateProbe, birthtime_fallback: BirthtimeFallback = "mtime") -> None:
        self.probe = probe
        self.birthtime_fallback = birthtime_fallback

    def load(self, path: Path) -> FileCatalogEntry:
        """Return the catalog entry for ``path``.

        Args:
            path: Video file to describe.

        Returns:
            FileCatalogEntry: Entry carrying both dates.

        Raises:
            FilesystemReadError: If the file cannot be stat'ed.
            ProbeToolError: If ffprobe fails on the file.
            ToolNotFoundError: If ffprobe cannot be located.
        """
        created = read_creation_time(path, self.birthtime_fallback)
        encoded = self.probe.probe(path)
        return FileCatalogEntry(
            path=path,
            creation_date=format_display(created),
            encoded_date=encoded,
        )

    def load_many(self, paths: Iterable[Path]) -> CatalogLoadResult:
        """Load entries for several files, collecting per-file failures.

        A missing ffprobe is not a per-file problem and propagates.
        """
        result = CatalogLoadResult()
        for path in paths:
            try:
                result.entries.append(self.load(path))
            except (FilesystemReadError, ProbeToolError) as exc:
                LOGGER.warning("Failed to load file info: %s", exc)
                result.errors.append(str(exc))
        return result


__all__ = ["CatalogLoader", "DateProbe"]
