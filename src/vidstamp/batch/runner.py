"""Sequential batch runner driving planner, executor and catalog refresh."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from vidstamp.catalog import CatalogLoader, FilesystemReadError, read_creation_time
from vidstamp.metadata import ProbeToolError

from .errors import TranscodeError
from .executor import TranscodeExecutor
from .models import (
    BatchReport,
    BatchSession,
    CollisionDecision,
    FileOutcome,
    PlannedFile,
    RunnerEvent,
    RunState,
)
from .planner import BatchPlanner

LOGGER = logging.getLogger(__name__)

CollisionPrompt = Callable[[str], CollisionDecision]
EventCallback = Callable[[RunnerEvent], None]

EMPTY_BATCH_STATUS = "No files need processing"
NO_OUTPUT_DIRECTORY_STATUS = "Please select an output folder first"
CANCELLED_STATUS = "Batch processing cancelled"


class BatchRunner:
    """Process the files of a session one at a time.

    The runner moves from IDLE to RUNNING only when there is something to process
    and an output directory is set. Per-file failures are recorded and the batch
    continues; only a cancel (from the collision prompt or `cancel`) aborts it.
    Cancellation takes effect between files, never during an ffmpeg run.
    """

    def __init__(
        self,
        session: BatchSession,
        planner: BatchPlanner,
        executor: TranscodeExecutor,
        loader: CatalogLoader,
        prompt: CollisionPrompt,
        *,
        pause_seconds: float = 0.5,
        on_event: Optional[EventCallback] = None,
    ) -> None:
        self.session = session
        self.planner = planner
        self.executor = executor
        self.loader = loader
        self.prompt = prompt
        self.pause_seconds = pause_seconds
        self._on_event = on_event
        self._state = RunState.IDLE
        self._cancel = threading.Event()
        self._state_lock = threading.Lock()

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    def cancel(self) -> None:
        """Request the running batch to stop before its next file."""
        self._cancel.set()

    def run(self) -> BatchReport:
        """Process every file that needs an update.

        Returns:
            BatchReport: Terminal state, status message and per-file outcomes.

        Raises:
            RuntimeError: If a batch is already running on this runner.
            ToolNotFoundError: If ffmpeg or ffprobe cannot be located; the runner
                returns to IDLE.
        """
        if not self.session.files_to_process:
            return BatchReport(state=RunState.IDLE, status=EMPTY_BATCH_STATUS)
        if self.session.output_directory is None:
            return BatchReport(state=RunState.IDLE, status=NO_OUTPUT_DIRECTORY_STATUS)

        with self._state_lock:
            if self._state is RunState.RUNNING:
                raise RuntimeError("A batch is already running.")
            self._state = RunState.RUNNING
        self._cancel.clear()

        try:
            report = self._run_plan()
        except BaseException:
            self._state = RunState.IDLE
            raise
        self._state = report.state
        return report

    # ------------------------------------------------------------------ #
    # Helpers                                                            #
    # ------------------------------------------------------------------ #

    def _run_plan(self) -> BatchReport:
        plan = self.planner.build_plan(self.session)
        total = len(plan.items)
        outcomes: list[FileOutcome] = []
        aborted = False

        for position, item in enumerate(plan.items):
            if self._cancel.is_set():
                aborted = True
                break

            self._emit("overall_progress", position, total, fraction=position / total)

            if item.destination.exists() and not self.session.overwrite_all:
                decision = self.prompt(item.destination.name)
                if decision is CollisionDecision.CANCEL_ALL:
                    LOGGER.info("Batch cancelled at %s", item.destination.name)
                    aborted = True
                    break
                if decision is CollisionDecision.SKIP:
                    outcomes.append(
                        FileOutcome(
                            source=item.source,
                            destination=item.destination,
                            status="skipped",
                            message=f"Skipped {item.source.name}: {item.destination.name} already exists",
                        )
                    )
                    self._emit("overall_progress", position, total, fraction=(position + 1) / total)
                    continue

            outcomes.append(self._process(item, total))
            self._emit("overall_progress", position, total, fraction=(position + 1) / total)

            if position < total - 1 and self.pause_seconds > 0:
                time.sleep(self.pause_seconds)

        if aborted:
            return BatchReport(state=RunState.ABORTED, status=CANCELLED_STATUS, outcomes=outcomes)

        directory = plan.output_directory.name if plan.output_directory else ""
        return BatchReport(
            state=RunState.COMPLETED,
            status=f"Batch processing completed! Files saved to: {directory}",
            outcomes=outcomes,
        )

    def _process(self, item: PlannedFile, total: int) -> FileOutcome:
        self._emit(
            "file_started",
            item.index,
            total,
            path=item.source,
            message=f"Processing file {item.index + 1} of {total}: {item.source.name}",
        )

        def _progress(fraction: float) -> None:
            self._emit("file_progress", item.index, total, path=item.source, fraction=fraction)

        try:
            created = read_creation_time(item.source, self.loader.birthtime_fallback)
            result = self.executor.process(item.source, item.destination, created, _progress)
        except (FilesystemReadError, TranscodeError) as exc:
            LOGGER.warning("Processing failed for %s: %s", item.source.name, exc)
            self._emit("file_finished", item.index, total, path=item.source, fraction=0.0)
            return FileOutcome(
                source=item.source,
                destination=item.destination,
                status="failed",
                message=f"Failed to process {item.source.name}: {exc}",
            )

        self.planner.reconcile(self.session, item.source, item.destination)
        message = result.message
        try:
            self.session.set_entry(self.loader.load(item.destination))
        except (FilesystemReadError, ProbeToolError) as exc:
            LOGGER.warning("Could not refresh file info for %s: %s", item.destination, exc)
            message = f"{message} (could not refresh file info: {exc})"

        self._emit("file_finished", item.index, total, path=item.destination, fraction=1.0, message=message)
        return FileOutcome(
            source=item.source,
            destination=item.destination,
            status=result.status,
            message=message,
        )

    def _emit(self, kind: str, index: int, total: int, **details) -> None:
        if self._on_event is None:
            return
        self._on_event(RunnerEvent(kind=kind, index=index, total=total, **details))


__all__ = [
    "CANCELLED_STATUS",
    "EMPTY_BATCH_STATUS",
    "NO_OUTPUT_DIRECTORY_STATUS",
    "BatchRunner",
    "CollisionPrompt",
    "EventCallback",
]
