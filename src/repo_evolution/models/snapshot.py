"""Snapshot model for one reconstructed point in the timeline."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from .node import Edge, FileStatus, Node


class IntegrityKind(str, Enum):
    """Category of a non-fatal data quality problem."""

    ORPHAN = "orphan"
    AMBIGUOUS_MOVE = "ambiguous_move"
    DUPLICATE_EDGE = "duplicate_edge"


class DataIntegrityWarning(BaseModel):
    """Non-fatal problem found while assembling a snapshot."""

    kind: IntegrityKind
    path: str
    detail: str = ""


class Snapshot(BaseModel):
    """Represents the reconstructed file graph at one timeline step."""

    id: str
    message: str = ""
    author: str = ""
    timestamp: datetime
    nodes: List[Node] = []
    edges: List[Edge] = []
    warnings: List[DataIntegrityWarning] = []

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get the live node with this id, ignoring ghosts."""
        for node in self.nodes:
            if node.id == node_id and not node.is_ghost:
                return node
        return None

    @property
    def active_nodes(self) -> List[Node]:
        return [node for node in self.nodes if not node.is_ghost]

    @property
    def ghost_nodes(self) -> List[Node]:
        return [node for node in self.nodes if node.is_ghost]

    def live_sizes(self) -> Dict[str, int]:
        """Map of path to size for every non-ghost node."""
        return {node.id: node.size for node in self.active_nodes}

    def count_status(self, status: FileStatus) -> int:
        return sum(1 for node in self.nodes if node.file_status == status)
