"""Sequence tracker, assembler and layout over a whole timeline."""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from repo_evolution.config import LayoutSettings
from repo_evolution.core.continuity import ContinuityOrchestrator
from repo_evolution.core.file_state import FileStateTracker
from repo_evolution.core.snapshot import SnapshotAssembler
from repo_evolution.errors import InputValidationError
from repo_evolution.models.change import TimelineEntry
from repo_evolution.models.snapshot import Snapshot

logger = logging.getLogger(__name__)

ON_ERROR_CHOICES = ("skip", "abort")

EntryLike = Union[TimelineEntry, Mapping[str, Any]]


class TimelineBuilder:
    """Turns ordered timeline entries into classified snapshots.

    The tracker state is cumulative across build() calls on one builder;
    call reset() before replaying a different timeline.
    """

    def __init__(
        self,
        settings: Optional[LayoutSettings] = None,
        tracker: Optional[FileStateTracker] = None,
        assembler: Optional[SnapshotAssembler] = None,
    ):
        self.settings = settings or LayoutSettings()
        self.tracker = tracker or FileStateTracker()
        self.assembler = assembler or SnapshotAssembler(
            strict_integrity=self.settings.strict_integrity
        )
        self.skipped: List[str] = []
        self._previous: Optional[Dict[str, int]] = None

    def step(self, entry: EntryLike) -> Snapshot:
        """Apply one entry and assemble its snapshot.

        Raises InputValidationError without touching tracker state when a
        record in the entry is malformed.
        """
        if not isinstance(entry, TimelineEntry):
            try:
                entry = TimelineEntry.model_validate(entry)
            except ValidationError as e:
                raise InputValidationError(f"Invalid timeline entry: {e}") from e

        try:
            self.tracker.apply_batch(entry.changes)
        except InputValidationError as e:
            raise InputValidationError(f"Step {entry.id}: {e}", index=e.index) from e

        snapshot = self.assembler.assemble(
            entry.id,
            self.tracker.get_effective_files(),
            previous=self._previous,
            renames=self.tracker.last_renames(),
            message=entry.message,
            author=entry.author,
            timestamp=entry.timestamp,
        )
        self._previous = snapshot.live_sizes()
        return snapshot

    def build(
        self,
        entries: Iterable[EntryLike],
        on_error: str = "skip",
        on_snapshot: Optional[Callable[[Snapshot], None]] = None,
    ) -> List[Snapshot]:
        """Build one snapshot per valid entry, in order.

        With on_error="skip" a step with a malformed record produces no
        snapshot and leaves the tracker as it was; with "abort" the error
        propagates.
        """
        if on_error not in ON_ERROR_CHOICES:
            raise ValueError(f"on_error must be one of {ON_ERROR_CHOICES}")

        snapshots = []
        for entry in entries:
            try:
                snapshot = self.step(entry)
            except InputValidationError as e:
                if on_error == "abort":
                    raise
                logger.warning("Skipping timeline step: %s", e)
                self.skipped.append(str(e))
                continue
            snapshots.append(snapshot)
            if on_snapshot is not None:
                on_snapshot(snapshot)

        logger.info(
            "Built %d snapshots (%d steps skipped)", len(snapshots), len(self.skipped)
        )
        return snapshots

    def reset(self) -> None:
        self.tracker.clear()
        self.skipped = []
        self._previous = None


def layout_timeline(
    snapshots: Iterable[Snapshot],
    orchestrator: Optional[ContinuityOrchestrator] = None,
) -> List[Snapshot]:
    """Advance every snapshot through one orchestrator, in order."""
    orchestrator = orchestrator or ContinuityOrchestrator()
    return [orchestrator.advance(snapshot) for snapshot in snapshots]
