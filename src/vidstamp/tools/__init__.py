"""External tool discovery for ffmpeg and ffprobe."""

from .errors import ToolNotFoundError
from .locator import FFMPEG, FFPROBE, ToolLocator

__all__ = ["FFMPEG", "FFPROBE", "ToolLocator", "ToolNotFoundError"]
