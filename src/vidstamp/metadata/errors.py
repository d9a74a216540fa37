"""Errors raised while probing media metadata."""

from __future__ import annotations

from pathlib import Path

from vidstamp.errors import VidstampError


class ProbeToolError(VidstampError):
    """Raised when ffprobe cannot be started or exits abnormally."""

    def __init__(self, path: Path, message: str, exit_code: int | None = None) -> None:
        self.path = path
        self.exit_code = exit_code
        super().__init__(f"{path}: {message}")
