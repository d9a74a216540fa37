"""Batch planning and sequential processing of selected videos."""

from .discovery import VideoScanner
from .errors import TranscodeError
from .executor import ProcessOutcome, TranscodeExecutor
from .models import (
    VIDEO_EXTENSIONS,
    BatchPlan,
    BatchReport,
    BatchSession,
    CollisionDecision,
    FileOutcome,
    OutputPolicy,
    PlannedFile,
    RunnerEvent,
    RunState,
    is_video_file,
)
from .planner import BatchPlanner
from .runner import BatchRunner

__all__ = [
    "VIDEO_EXTENSIONS",
    "BatchPlan",
    "BatchPlanner",
    "BatchReport",
    "BatchRunner",
    "BatchSession",
    "CollisionDecision",
    "FileOutcome",
    "OutputPolicy",
    "PlannedFile",
    "ProcessOutcome",
    "RunState",
    "RunnerEvent",
    "TranscodeError",
    "TranscodeExecutor",
    "VideoScanner",
    "is_video_file",
]
