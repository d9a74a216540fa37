"""Read and write filesystem timestamps and sizes."""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from .errors import AttributeWriteError, FilesystemReadError

LOGGER = logging.getLogger(__name__)

BirthtimeFallback = Literal["mtime", "now"]

_SIZE_UNITS = (("GB", 1024**3), ("MB", 1024**2), ("KB", 1024))


def read_creation_time(path: Path, fallback: BirthtimeFallback = "mtime") -> datetime:
    """Return the creation time of ``path`` as an aware local datetime.

    Args:
        path: File to inspect.
        fallback: Source used when the platform does not report a birth time.
            ``now`` uses the current time. ``mtime`` (the default) uses the
            modification time instead, which is the timestamp written onto
            outputs, so a processed file still compares equal on a later scan.

    Returns:
        datetime: Creation instant.

    Raises:
        FilesystemReadError: If the file cannot be stat'ed.
    """
    try:
        stat = path.stat()
    except OSError as exc:
        raise FilesystemReadError(path, exc.strerror or str(exc)) from exc

    birthtime = getattr(stat, "st_birthtime", None)
    if birthtime is not None:
        return datetime.fromtimestamp(birthtime).astimezone()
    if fallback == "mtime":
        return datetime.fromtimestamp(stat.st_mtime).astimezone()
    LOGGER.debug("No birth time for %s; using the current time.", path)
    return datetime.now().astimezone()


def write_timestamps(path: Path, instant: datetime) -> None:
    """Set the access, modification and (on Windows) creation time of ``path``.

    On macOS, moving the modification time before the birth time also moves the
    birth time, so ``os.utime`` is sufficient there.

    Raises:
        AttributeWriteError: If any timestamp cannot be written.
    """
    stamp = instant.timestamp()
    try:
        os.utime(path, (stamp, stamp))
        if sys.platform == "win32":
            _set_windows_creation_time(path, instant)
    except OSError as exc:
        raise AttributeWriteError(path, exc.strerror or str(exc)) from exc


def file_size(path: Path) -> Optional[int]:
    """Return the size of ``path`` in bytes, or None when unavailable."""
    try:
        return path.stat().st_size
    except OSError:
        return None


def format_size(size: int) -> str:
    """Render a byte count using KB/MB/GB units."""
    for unit, factor in _SIZE_UNITS:
        if size >= factor:
            return f"{size / factor:.1f} {unit}"
    return f"{size / 1024:.1f} KB" if size else "Zero KB"


def _set_windows_creation_time(path: Path, instant: datetime) -> None:  # pragma: no cover - Windows only
    import ctypes
    from ctypes import wintypes

    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
    handle = kernel32.CreateFileW(str(path), 0x40000000, 0, None, 3, 0x80, None)
    if handle == wintypes.HANDLE(-1).value:
        raise OSError(ctypes.get_last_error(), "CreateFileW failed")
    try:
        epoch = datetime(1601, 1, 1, tzinfo=timezone.utc)
        ticks = int((instant.astimezone(timezone.utc) - epoch).total_seconds() * 10_000_000)
        created = wintypes.FILETIME(ticks & 0xFFFFFFFF, ticks >> 32)
        if not kernel32.SetFileTime(handle, ctypes.byref(created), None, None):
            raise OSError(ctypes.get_last_error(), "SetFileTime failed")
    finally:
        kernel32.CloseHandle(handle)


__all__ = [
    "BirthtimeFallback",
    "file_size",
    "format_size",
    "read_creation_time",
    "write_timestamps",
]
