"""Reconstruction and layout engines."""

from .continuity import ContinuityOrchestrator, PositionStore
from .file_state import FileStateTracker
from .simulation import ForceSimulation
from .snapshot import SnapshotAssembler
from .timeline import TimelineBuilder, layout_timeline

__all__ = [
    "ContinuityOrchestrator",
    "FileStateTracker",
    "ForceSimulation",
    "PositionStore",
    "SnapshotAssembler",
    "TimelineBuilder",
    "layout_timeline",
]
