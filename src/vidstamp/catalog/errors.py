"""Filesystem errors surfaced by the catalog."""

from __future__ import annotations

from pathlib import Path

from vidstamp.errors import VidstampError


class FilesystemReadError(VidstampError):
    """Raised when a file's attributes cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"{path}: {reason}")


class AttributeWriteError(VidstampError):
    """Raised when timestamps cannot be written onto a file."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"{path}: could not set file timestamps ({reason})")
