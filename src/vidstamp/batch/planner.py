"""Planner for batch processing."""

from __future__ import annotations

import logging
from pathlib import Path

from .models import BatchPlan, BatchSession, OutputPolicy, PlannedFile

LOGGER = logging.getLogger(__name__)


class BatchPlanner:
    """Derive output paths and keep the selection consistent after outputs replace inputs."""

    def derive_output_path(self, source: Path, output_dir: Path, policy: OutputPolicy) -> Path:
        """Return the output path for ``source`` inside ``output_dir``.

        Args:
            source: Input video path.
            output_dir: Directory receiving outputs.
            policy: Naming policy; the suffix is used only when enabled and non-empty.

        Returns:
            Path: ``output_dir/<stem><suffix>.<ext>`` or ``output_dir/<name>``.
        """
        if policy.append_suffix and policy.suffix:
            extension = source.suffix.lstrip(".")
            return output_dir / f"{source.stem}{policy.suffix}.{extension}"
        return output_dir / source.name

    def build_plan(self, session: BatchSession) -> BatchPlan:
        """Produce the ordered list of files to process with their output paths.

        Returns an empty plan when no output directory is configured.
        """
        plan = BatchPlan(output_directory=session.output_directory)
        if session.output_directory is None:
            return plan

        for index, source in enumerate(session.files_to_process):
            destination = self.derive_output_path(source, session.output_directory, session.policy)
            plan.items.append(PlannedFile(index=index, source=source, destination=destination))
        return plan

    def reconcile(self, session: BatchSession, source: Path, output: Path) -> None:
        """Replace ``source`` by ``output`` in the selection after a successful run.

        The source entry is always dropped. When the output differs from the source
        it takes over the source's slot; an older selection slot already holding the
        output path is removed first so the path appears only once.
        """
        with session.lock:
            slot = session.index_of(source)
            if slot is None:
                return
            session.drop_entry(source)
            if output == source:
                return

            existing = session.index_of(output)
            if existing is not None:
                session.pop_slot(existing)
                session.drop_entry(output)
                if existing < slot:
                    slot -= 1
                LOGGER.debug("Collapsed duplicate selection entry for %s", output)
            session.replace_slot(slot, output)


__all__ = ["BatchPlanner"]
