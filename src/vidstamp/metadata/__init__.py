"""Media metadata probing and timestamp normalization."""

from .codec import (
    ARGUMENT_FORMAT,
    DISPLAY_FORMAT,
    canonical_display,
    format_argument,
    format_display,
    parse_date,
)
from .errors import ProbeToolError
from .probe import DATE_TAG_KEYS, MetadataProbe, extract_encoded_date

__all__ = [
    "ARGUMENT_FORMAT",
    "DATE_TAG_KEYS",
    "DISPLAY_FORMAT",
    "MetadataProbe",
    "ProbeToolError",
    "canonical_display",
    "extract_encoded_date",
    "format_argument",
    "format_display",
    "parse_date",
]
