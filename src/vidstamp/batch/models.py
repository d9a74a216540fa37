"""Batch session state and plan/outcome models."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Literal, Optional

from pydantic import BaseModel, Field

from vidstamp.catalog import FileCatalogEntry, file_size, format_size

VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "avi", "mkv", "m4v", "wmv", "flv", "webm"})


def is_video_file(path: Path) -> bool:
    """Return True when ``path`` carries one of the recognized video extensions."""
    return path.suffix.lstrip(".").lower() in VIDEO_EXTENSIONS


class RunState(str, Enum):
    """Lifecycle of a batch run."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class CollisionDecision(str, Enum):
    """Answer to an output collision prompt."""

    OVERWRITE = "overwrite"
    SKIP = "skip"
    CANCEL_ALL = "cancel"


class OutputPolicy(BaseModel):
    """Output file naming policy.

    Attributes:
        append_suffix: Whether ``suffix`` is appended to the input stem.
        suffix: Text inserted between the stem and the extension.
    """

    append_suffix: bool = True
    suffix: str = "_processed"


class PlannedFile(BaseModel):
    """A file scheduled for processing and its derived output path."""

    index: int
    source: Path
    destination: Path


class BatchPlan(BaseModel):
    """Ordered files to process in a run."""

    output_directory: Optional[Path] = None
    items: List[PlannedFile] = Field(default_factory=list)


OutcomeStatus = Literal["success", "degraded", "failed", "skipped"]


class FileOutcome(BaseModel):
    """Result of handling a single planned file.

    Attributes:
        source: Input file.
        destination: Output path derived for the input.
        status: How the file was handled.
        message: Human-readable detail.
    """

    source: Path
    destination: Path
    status: OutcomeStatus
    message: str = ""


@dataclass(slots=True)
class BatchReport:
    """Summary of a batch run.

    Attributes:
        state: Terminal state (or IDLE when preconditions failed).
        status: Status message describing the result.
        outcomes: Per-file outcomes in processing order.
    """

    state: RunState
    status: str
    outcomes: list[FileOutcome] = field(default_factory=list)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    @property
    def processed(self) -> int:
        return self.count("success") + self.count("degraded")

    @property
    def failed(self) -> int:
        return self.count("failed")

    @property
    def skipped(self) -> int:
        return self.count("skipped")


@dataclass(slots=True)
class RunnerEvent:
    """Progress notification emitted by the runner.

    ``kind`` is one of ``file_started``, ``file_progress``, ``file_finished``
    and ``overall_progress``; ``fraction`` is in ``[0, 1]``.
    """

    kind: str
    index: int
    total: int
    path: Optional[Path] = None
    fraction: float = 0.0
    message: str = ""


class BatchSession:
    """Ordered selection of videos with their catalog entries and output settings."""

    def __init__(
        self,
        *,
        output_directory: Path | None = None,
        policy: OutputPolicy | None = None,
        overwrite_all: bool = False,
    ) -> None:
        self.output_directory = output_directory
        self.policy = policy or OutputPolicy()
        self.overwrite_all = overwrite_all
        self._selection: list[Path] = []
        self._entries: dict[Path, FileCatalogEntry] = {}
        self._sizes: dict[Path, str] = {}
        self.lock = threading.RLock()

    # Selection --------------------------------------------------------

    @property
    def selection(self) -> list[Path]:
        with self.lock:
            return list(self._selection)

    def add(self, paths: Iterable[Path]) -> list[Path]:
        """Append new video paths to the selection.

        Paths already selected and files without a video extension are ignored.

        Returns:
            list[Path]: Paths that were actually added, in order.
        """
        added: list[Path] = []
        with self.lock:
            for path in paths:
                if not is_video_file(path) or path in self._selection:
                    continue
                self._selection.append(path)
                added.append(path)
        return added

    def remove(self, path: Path) -> None:
        with self.lock:
            self._selection = [item for item in self._selection if item != path]
            self._entries.pop(path, None)
            self._sizes.pop(path, None)

    def clear(self) -> None:
        """Drop the whole selection and the output directory."""
        with self.lock:
            self._selection.clear()
            self._entries.clear()
            self._sizes.clear()
            self.output_directory = None

    def replace_slot(self, index: int, path: Path) -> None:
        with self.lock:
            self._selection[index] = path

    def pop_slot(self, index: int) -> Path:
        with self.lock:
            return self._selection.pop(index)

    def index_of(self, path: Path) -> Optional[int]:
        with self.lock:
            try:
                return self._selection.index(path)
            except ValueError:
                return None

    # Catalog ----------------------------------------------------------

    def entry(self, path: Path) -> Optional[FileCatalogEntry]:
        with self.lock:
            return self._entries.get(path)

    def set_entry(self, entry: FileCatalogEntry) -> None:
        with self.lock:
            self._entries[entry.path] = entry

    def drop_entry(self, path: Path) -> None:
        with self.lock:
            self._entries.pop(path, None)
            self._sizes.pop(path, None)

    def missing_entries(self) -> list[Path]:
        """Return selected paths that have not been probed yet."""
        with self.lock:
            return [path for path in self._selection if path not in self._entries]

    def size_label(self, path: Path) -> Optional[str]:
        """Return a cached human-readable size for ``path``."""
        with self.lock:
            cached = self._sizes.get(path)
            if cached is not None:
                return cached
            size = file_size(path)
            if size is None:
                return None
            label = format_size(size)
            self._sizes[path] = label
            return label

    # Derived views ----------------------------------------------------

    def _known_entries(self) -> list[FileCatalogEntry]:
        with self.lock:
            return [self._entries[path] for path in self._selection if path in self._entries]

    @property
    def files_to_process(self) -> list[Path]:
        """Selected paths, in order, whose entry needs an update."""
        return [entry.path for entry in self._known_entries() if entry.needs_update]

    @property
    def files_needing_update(self) -> int:
        return sum(1 for entry in self._known_entries() if entry.needs_update)

    @property
    def files_up_to_date(self) -> int:
        return sum(1 for entry in self._known_entries() if entry.dates_match)

    def status_message(self) -> str:
        if not self.selection:
            return ""
        pending = self.files_needing_update
        if pending > 0:
            return f"{pending} file{'' if pending == 1 else 's'} ready for processing"
        return "All files are already up to date"


__all__ = [
    "VIDEO_EXTENSIONS",
    "BatchPlan",
    "BatchReport",
    "BatchSession",
    "CollisionDecision",
    "FileOutcome",
    "OutcomeStatus",
    "OutputPolicy",
    "PlannedFile",
    "RunState",
    "RunnerEvent",
    "is_video_file",
]
