"""Errors raised while locating or running external tools."""

from __future__ import annotations

from typing import Sequence

from vidstamp.errors import VidstampError


class ToolNotFoundError(VidstampError):
    """Raised when an external executable cannot be found in any known location."""

    def __init__(self, tool: str, searched: Sequence[str] = ()) -> None:
        self.tool = tool
        self.searched = list(searched)
        message = f"Could not find {tool}"
        if self.searched:
            message += f" (searched: {', '.join(self.searched)})"
        super().__init__(message)
