"""Run ffmpeg to rewrite container dates and mirror timestamps onto the output."""

from __future__ import annotations

import logging
import subprocess
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, Literal, Optional

from pydantic import BaseModel

from vidstamp.catalog import AttributeWriteError, write_timestamps
from vidstamp.metadata import format_argument
from vidstamp.tools import FFMPEG, ToolLocator

from .errors import TranscodeError

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class ProcessOutcome(BaseModel):
    """Successful ffmpeg run; ``degraded`` when output timestamps could not be set."""

    status: Literal["success", "degraded"]
    message: str


class TranscodeExecutor:
    """Stream-copy a video while overriding its ``creation_time`` and ``date`` tags.

    ffmpeg does not report progress in this invocation mode, so per-file progress
    is estimated: it starts at 0.3 once the process runs, grows by ``tick_step``
    every ``tick_seconds`` up to ``progress_ceiling`` and jumps to 1.0 on success.
    """

    def __init__(
        self,
        locator: ToolLocator,
        *,
        tick_seconds: float = 0.1,
        tick_step: float = 0.02,
        progress_ceiling: float = 0.9,
    ) -> None:
        self.locator = locator
        self.tick_seconds = tick_seconds
        self.tick_step = tick_step
        self.progress_ceiling = progress_ceiling

    def build_command(self, executable: str, source: Path, output: Path, instant: datetime) -> list[str]:
        stamp = format_argument(instant)
        return [
            executable,
            "-i",
            str(source),
            "-c",
            "copy",
            "-metadata",
            f"creation_time={stamp}",
            "-metadata",
            f"date={stamp}",
            "-y",
            str(output),
        ]

    def process(
        self,
        source: Path,
        output: Path,
        creation_instant: datetime,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ProcessOutcome:
        """Write ``output`` from ``source`` with the dates set to ``creation_instant``.

        Args:
            source: Input video.
            output: Output path; overwritten unconditionally.
            creation_instant: Creation time of ``source``.
            on_progress: Optional callback receiving estimated progress fractions.

        Returns:
            ProcessOutcome: Success, or degraded success when timestamps could not be set.

        Raises:
            ToolNotFoundError: If ffmpeg cannot be located.
            TranscodeError: If ffmpeg cannot be started or exits with a nonzero status.
        """
        report = on_progress or (lambda _fraction: None)
        executable = self.locator.locate(FFMPEG)
        command = self.build_command(executable, source, output, creation_instant)

        report(0.1)
        output.parent.mkdir(parents=True, exist_ok=True)
        LOGGER.debug("Running %s", command)

        with tempfile.TemporaryFile(mode="w+", encoding="utf-8", errors="replace") as stderr:
            try:
                process = subprocess.Popen(
                    command,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=stderr,
                )
            except OSError as exc:
                raise TranscodeError(-1, str(exc)) from exc

            report(0.3)
            exit_code = self._wait(process, report, start=0.3)

            if exit_code != 0:
                stderr.seek(0)
                diagnostics = stderr.read().strip() or "Unknown error"
                raise TranscodeError(exit_code, diagnostics)

        report(1.0)
        try:
            write_timestamps(output, creation_instant)
        except AttributeWriteError as exc:
            LOGGER.info("%s", exc)
            return ProcessOutcome(
                status="degraded",
                message=f"Processed {source.name}! (Note: Could not set file creation date)",
            )
        return ProcessOutcome(status="success", message=f"Successfully processed {source.name}!")

    def _wait(self, process: subprocess.Popen, report: ProgressCallback, *, start: float) -> int:
        progress = start
        while True:
            try:
                return process.wait(timeout=self.tick_seconds)
            except subprocess.TimeoutExpired:
                if progress < self.progress_ceiling:
                    progress = min(self.progress_ceiling, progress + self.tick_step)
                    report(progress)


__all__ = ["ProcessOutcome", "ProgressCallback", "TranscodeExecutor"]
