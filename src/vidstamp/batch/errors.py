"""Batch processing errors."""

from vidstamp.errors import VidstampError


class TranscodeError(VidstampError):
    """Raised when ffmpeg runs and fails.

    Attributes:
        exit_code: Process exit status, or -1 when the process could not start.
        diagnostics: Captured error output.
    """

    def __init__(self, exit_code: int, diagnostics: str) -> None:
        self.exit_code = exit_code
        self.diagnostics = diagnostics
        super().__init__(f"ffmpeg exited with status {exit_code}: {diagnostics}")
