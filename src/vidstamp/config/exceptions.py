"""Custom exceptions for configuration management."""

from vidstamp.errors import VidstampError


class ConfigError(VidstampError):
    """Raised when configuration data cannot be processed."""
