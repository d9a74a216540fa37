"""Read the encoded date of a video through ffprobe."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from vidstamp.tools import FFPROBE, ToolLocator

from .codec import canonical_display
from .errors import ProbeToolError

LOGGER = logging.getLogger(__name__)

DATE_TAG_KEYS = (
    "creation_time",
    "date",
    "encoded_date",
    "CREATION_TIME",
    "DATE",
    "com.apple.quicktime.creationdate",
    "creation_date",
)


def extract_encoded_date(payload: Any) -> Optional[str]:
    """Return the display string of the first usable date tag in ffprobe output.

    Container tags are scanned before stream tags; within a tag mapping the keys
    are tried in ``DATE_TAG_KEYS`` order and the first value that parses wins.

    Args:
        payload: Decoded ``-show_format -show_streams`` JSON document.

    Returns:
        Optional[str]: Canonical display string, or None when no tag parses.
    """
    if not isinstance(payload, Mapping):
        return None

    format_section = payload.get("format")
    if isinstance(format_section, Mapping):
        found = _scan_tags(format_section.get("tags"))
        if found is not None:
            return found

    streams = payload.get("streams")
    if isinstance(streams, list):
        for stream in streams:
            if not isinstance(stream, Mapping):
                continue
            found = _scan_tags(stream.get("tags"))
            if found is not None:
                return found

    return None


def _scan_tags(tags: Any, keys: Iterable[str] = DATE_TAG_KEYS) -> Optional[str]:
    if not isinstance(tags, Mapping):
        return None
    for key in keys:
        value = tags.get(key)
        if not isinstance(value, str):
            continue
        converted = canonical_display(value)
        if converted is not None:
            return converted
    return None


class MetadataProbe:
    """Run ffprobe against a file and extract its encoded date."""

    def __init__(self, locator: ToolLocator) -> None:
        self.locator = locator

    def probe(self, path: Path) -> Optional[str]:
        """Return the encoded date of ``path`` in display form.

        Args:
            path: Video file to inspect.

        Returns:
            Optional[str]: Canonical display string or None when no date tag is usable.

        Raises:
            ToolNotFoundError: If ffprobe cannot be located.
            ProbeToolError: If ffprobe cannot be started or exits with a nonzero status.
        """
        return extract_encoded_date(self.read_metadata(path))

    def read_metadata(self, path: Path) -> Optional[dict[str, Any]]:
        """Return the decoded ffprobe document for ``path`` or None when unreadable."""
        executable = self.locator.locate(FFPROBE)
        command = [
            executable,
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]
        LOGGER.debug("Running %s", command)
        try:
            completed = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise ProbeToolError(path, f"could not run ffprobe: {exc}") from exc

        if completed.returncode != 0:
            detail = completed.stderr.strip() or f"ffprobe exited with status {completed.returncode}"
            raise ProbeToolError(path, detail, exit_code=completed.returncode)

        try:
            document = json.loads(completed.stdout or "null")
        except json.JSONDecodeError as exc:
            LOGGER.debug("Unreadable ffprobe output for %s: %s", path, exc)
            return None

        if not isinstance(document, dict):
            LOGGER.debug("Unexpected ffprobe output for %s: %r", path, type(document).__name__)
            return None
        return document


__all__ = ["DATE_TAG_KEYS", "MetadataProbe", "extract_encoded_date"]
