"""Base exception shared by vidstamp subpackages."""


class VidstampError(Exception):
    """Base class for errors raised by vidstamp."""
