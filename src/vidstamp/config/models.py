"""Configuration models describing vidstamp settings."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SEARCH_PATHS = ["/opt/homebrew/bin", "/usr/local/bin", "/usr/bin", "/bin"]


class VidstampBaseModel(BaseModel):
    """Shared configuration for vidstamp Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class ToolSettings(VidstampBaseModel):
    """Locations of the external media tools.

    Attributes:
        ffmpeg_path: Explicit path to the ffmpeg executable, if any.
        ffprobe_path: Explicit path to the ffprobe executable, if any.
        search_paths: Directories checked after the executable search path.
    """

    ffmpeg_path: Optional[str] = None
    ffprobe_path: Optional[str] = None
    search_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_SEARCH_PATHS))


class OutputSettings(VidstampBaseModel):
    """Defaults for output naming and collisions.

    Attributes:
        append_suffix: Whether to append ``suffix`` to output file stems.
        suffix: Text appended to the stem when ``append_suffix`` is enabled.
        overwrite_all: Overwrite existing outputs without prompting.
    """

    append_suffix: bool = True
    suffix: str = "_processed"
    overwrite_all: bool = False


class ProcessingSettings(VidstampBaseModel):
    """Batch processing behavior.

    Attributes:
        pause_seconds: Pause between files so each completion is observable.
        progress_tick_seconds: Interval of the estimated per-file progress ticks.
        birthtime_fallback: Creation time source when the platform reports no
            birth time (``mtime`` or ``now``).
    """

    pause_seconds: float = Field(default=0.5, ge=0)
    progress_tick_seconds: float = Field(default=0.1, gt=0)
    birthtime_fallback: Literal["mtime", "now"] = "mtime"


class LoggingSettings(VidstampBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


class VidstampConfig(VidstampBaseModel):
    """Top-level configuration struct for vidstamp.

    Attributes:
        tools: External tool locations.
        output: Output naming and collision defaults.
        processing: Batch processing settings.
        logging: Logging configuration.
    """

    tools: ToolSettings = Field(default_factory=ToolSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "DEFAULT_SEARCH_PATHS",
    "VidstampBaseModel",
    "ToolSettings",
    "OutputSettings",
    "ProcessingSettings",
    "LoggingSettings",
    "VidstampConfig",
]
