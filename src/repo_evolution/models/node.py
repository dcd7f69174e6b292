"""Graph node and edge models."""

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel

# Id of the virtual root. Real paths never start or end with a separator,
# so this can never collide with one.
ROOT_ID = "/"


class NodeKind(str, Enum):
    """Whether a node is a file or a directory."""

    FILE = "file"
    DIRECTORY = "directory"


class SizeChange(str, Enum):
    """Direction of a node's size change relative to the previous snapshot."""

    INCREASE = "increase"
    DECREASE = "decrease"
    UNCHANGED = "unchanged"


class FileStatus(str, Enum):
    """Lifecycle classification of a node in a snapshot."""

    ADDED = "added"
    UNCHANGED = "unchanged"
    MOVED = "moved"
    DELETED = "deleted"


class EdgeKind(str, Enum):
    """Type of relationship between two nodes."""

    PARENT = "parent"


class Node(BaseModel):
    """A file or directory in one snapshot.

    Position and velocity belong to the layout simulation; every other field
    is filled in by reconstruction.
    """

    id: str
    path: str
    name: str
    size: int = 0
    kind: NodeKind = NodeKind.FILE
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    vx: Optional[float] = None
    vy: Optional[float] = None
    vz: Optional[float] = None
    previous_size: Optional[int] = None
    size_change: Optional[SizeChange] = None
    file_status: Optional[FileStatus] = None
    previous_path: Optional[str] = None

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID

    @property
    def is_ghost(self) -> bool:
        """Check if node is a synthetic placeholder for a deleted path."""
        return self.file_status == FileStatus.DELETED

    @property
    def has_position(self) -> bool:
        return self.x is not None and self.y is not None and self.z is not None

    def position(self) -> Tuple[float, float, float]:
        return (self.x or 0.0, self.y or 0.0, self.z or 0.0)

    def velocity(self) -> Tuple[float, float, float]:
        return (self.vx or 0.0, self.vy or 0.0, self.vz or 0.0)


class Edge(BaseModel):
    """Directed parent edge from an ancestor to its immediate child."""

    source: str
    target: str
    kind: EdgeKind = EdgeKind.PARENT
