"""Data models for repo-evolution."""

from .change import ChangeRecord, ChangeStatus, TimelineEntry
from .node import ROOT_ID, Edge, EdgeKind, FileStatus, Node, NodeKind, SizeChange
from .snapshot import DataIntegrityWarning, IntegrityKind, Snapshot

__all__ = [
    "ROOT_ID",
    "ChangeRecord",
    "ChangeStatus",
    "DataIntegrityWarning",
    "Edge",
    "EdgeKind",
    "FileStatus",
    "IntegrityKind",
    "Node",
    "NodeKind",
    "SizeChange",
    "Snapshot",
    "TimelineEntry",
]
