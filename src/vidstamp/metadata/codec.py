"""Timestamp parsing and formatting for probe output, ffmpeg arguments and display.

Every comparison in the pipeline happens on the display form, a local-time
string at second granularity. Two timestamps are considered equal exactly when
their display strings are equal.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

DISPLAY_FORMAT = "%Y-%m-%d - %H:%M:%S"
ARGUMENT_FORMAT = "%Y-%m-%d %H:%M:%S"

# Tried in order; the first format that parses wins.
_INPUT_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)


def parse_date(text: object) -> Optional[datetime]:
    """Parse a tag value into a timezone-aware instant truncated to whole seconds.

    Args:
        text: Raw tag value as reported by ffprobe.

    Returns:
        Optional[datetime]: Parsed instant, or None when no supported format matches.
    """
    if not isinstance(text, str):
        return None
    value = text.strip()
    if not value:
        return None

    parsed: Optional[datetime] = None
    for fmt in _INPUT_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        break

    if parsed is None:
        # Internet date-time only: a time part and an explicit offset are required.
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            return None

    return _normalize(parsed)


def format_display(instant: datetime) -> str:
    """Return the canonical display string used for comparisons."""
    return _normalize(instant).astimezone().strftime(DISPLAY_FORMAT)


def format_argument(instant: datetime) -> str:
    """Return the timestamp form passed to ffmpeg ``-metadata`` options."""
    return _normalize(instant).astimezone().strftime(ARGUMENT_FORMAT)


def canonical_display(text: object) -> Optional[str]:
    """Parse ``text`` and return its display string, or None when unparseable."""
    instant = parse_date(text)
    if instant is None:
        return None
    return format_display(instant)


def _normalize(instant: datetime) -> datetime:
    # Naive values are wall-clock times in the local zone.
    if instant.tzinfo is None:
        instant = instant.astimezone()
    return instant.replace(microsecond=0)


__all__ = [
    "ARGUMENT_FORMAT",
    "DISPLAY_FORMAT",
    "canonical_display",
    "format_argument",
    "format_display",
    "parse_date",
]
