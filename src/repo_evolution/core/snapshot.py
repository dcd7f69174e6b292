"""Snapshot assembly: size/status classification, move detection, ghosts."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Set, Tuple, Union

from repo_evolution.core.tree_builder import (
    base_name,
    build_edges,
    build_nodes,
    find_duplicate_paths,
    find_orphans,
    parent_path,
)
from repo_evolution.errors import DataIntegrityError
from repo_evolution.models.node import (
    ROOT_ID,
    FileStatus,
    Node,
    NodeKind,
    SizeChange,
)
from repo_evolution.models.snapshot import (
    DataIntegrityWarning,
    IntegrityKind,
    Snapshot,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Moved:
    """The path most likely came from ``source``."""

    source: str


@dataclass(frozen=True)
class Added:
    """No previous path matches; the path is new."""


@dataclass(frozen=True)
class Ambiguous:
    """Several previous paths match equally well."""

    candidates: Tuple[str, ...]


MoveResult = Union[Moved, Added, Ambiguous]


def detect_move(
    path: str,
    size: int,
    previous: Mapping[str, int],
    current_paths: Set[str],
    claimed: Optional[Set[str]] = None,
) -> MoveResult:
    """Best-effort move detection by basename and exact size.

    A previous path is a candidate when it is gone from the current set, has
    the same basename and exactly the same size, and has not already been
    claimed by another move. Coincidental duplicates can match; callers
    decide what to do with an Ambiguous result.
    """
    name = base_name(path)
    claimed = claimed or set()
    candidates = tuple(
        prev_path
        for prev_path, prev_size in previous.items()
        if prev_path != ROOT_ID
        and prev_path not in current_paths
        and prev_path not in claimed
        and base_name(prev_path) == name
        and prev_size == size
    )
    if not candidates:
        return Added()
    if len(candidates) == 1:
        return Moved(candidates[0])
    return Ambiguous(candidates)


def compare_sizes(size: int, previous_size: int) -> SizeChange:
    if size > previous_size:
        return SizeChange.INCREASE
    if size < previous_size:
        return SizeChange.DECREASE
    return SizeChange.UNCHANGED


def _ancestor_paths(paths: Iterable[str]) -> Set[str]:
    ancestors = {ROOT_ID}
    for path in paths:
        parent = parent_path(path)
        while parent != ROOT_ID and parent not in ancestors:
            ancestors.add(parent)
            parent = parent_path(parent)
    return ancestors


class SnapshotAssembler:
    """Combines tree building with history to produce classified snapshots."""

    def __init__(self, strict_integrity: bool = False):
        self.strict_integrity = strict_integrity

    def classify(
        self,
        previous: Optional[Mapping[str, int]],
        current_nodes: List[Node],
        renames: Optional[Mapping[str, str]] = None,
        warnings: Optional[List[DataIntegrityWarning]] = None,
    ) -> List[Node]:
        """Enrich current nodes with status/size change and append ghost nodes.

        ``previous`` is the live path -> size mapping of the prior snapshot,
        or None for the first snapshot of a timeline. ``renames`` maps new
        paths to old ones for renames the change records stated explicitly;
        those win over the basename/size heuristic.
        """
        if previous is None:
            for node in current_nodes:
                node.file_status = FileStatus.ADDED
                node.size_change = SizeChange.UNCHANGED
            return current_nodes

        renames = renames or {}
        warnings = warnings if warnings is not None else []
        current_paths = {node.id for node in current_nodes}
        claimed: Set[str] = set()

        for node in current_nodes:
            if node.id in previous:
                node.file_status = FileStatus.UNCHANGED
                node.previous_size = previous[node.id]
                node.size_change = compare_sizes(node.size, previous[node.id])
                continue

            origin = renames.get(node.id)
            if (
                origin is not None
                and origin in previous
                and origin not in current_paths
                and origin not in claimed
            ):
                self._mark_moved(node, origin, previous[origin], claimed)
                node.size_change = compare_sizes(node.size, previous[origin])
                continue

            result = detect_move(node.id, node.size, previous, current_paths, claimed)
            if isinstance(result, Ambiguous):
                detail = f"candidates: {', '.join(result.candidates)}"
                logger.warning("Ambiguous move for %s (%s)", node.id, detail)
                warnings.append(
                    DataIntegrityWarning(
                        kind=IntegrityKind.AMBIGUOUS_MOVE, path=node.id, detail=detail
                    )
                )
                result = Moved(result.candidates[0])

            if isinstance(result, Moved):
                self._mark_moved(node, result.source, previous[result.source], claimed)
                node.size_change = SizeChange.UNCHANGED
            else:
                node.file_status = FileStatus.ADDED
                node.size_change = SizeChange.INCREASE

        return current_nodes + self._ghosts(previous, current_paths, claimed)

    @staticmethod
    def _mark_moved(node: Node, source: str, source_size: int, claimed: Set[str]):
        node.file_status = FileStatus.MOVED
        node.previous_path = source
        node.previous_size = source_size
        claimed.add(source)

    @staticmethod
    def _ghosts(
        previous: Mapping[str, int], current_paths: Set[str], claimed: Set[str]
    ) -> List[Node]:
        directories = _ancestor_paths(previous)
        ghosts = []
        for path, size in previous.items():
            if path in current_paths or path in claimed:
                continue
            ghosts.append(
                Node(
                    id=path,
                    path=path,
                    name="root" if path == ROOT_ID else base_name(path),
                    size=0,
                    kind=NodeKind.DIRECTORY if path in directories else NodeKind.FILE,
                    previous_size=size,
                    file_status=FileStatus.DELETED,
                    size_change=SizeChange.DECREASE,
                )
            )
        return ghosts

    def assemble(
        self,
        snapshot_id: str,
        files: List[Mapping[str, Any]],
        previous: Optional[Mapping[str, int]] = None,
        renames: Optional[Mapping[str, str]] = None,
        message: str = "",
        author: str = "",
        timestamp: Optional[datetime] = None,
    ) -> Snapshot:
        """Build, check and classify one snapshot from effective files."""
        nodes = build_nodes(files)
        edges = build_edges(files)
        warnings: List[DataIntegrityWarning] = []

        for path, count in find_duplicate_paths(files).items():
            detail = f"{parent_path(path)} -> {path} listed {count} times"
            logger.warning("Snapshot %s: duplicate path, %s", snapshot_id, detail)
            warnings.append(
                DataIntegrityWarning(
                    kind=IntegrityKind.DUPLICATE_EDGE, path=path, detail=detail
                )
            )

        orphans = find_orphans(nodes, edges)
        if orphans:
            logger.warning(
                "Snapshot %s has %d orphaned nodes: %s",
                snapshot_id,
                len(orphans),
                ", ".join(orphans),
            )
            if self.strict_integrity:
                raise DataIntegrityError(
                    f"Snapshot {snapshot_id} has orphaned nodes: {', '.join(orphans)}"
                )
            warnings.extend(
                DataIntegrityWarning(kind=IntegrityKind.ORPHAN, path=orphan)
                for orphan in orphans
            )

        classified = self.classify(previous, nodes, renames, warnings)

        return Snapshot(
            id=snapshot_id,
            message=message,
            author=author,
            timestamp=timestamp or datetime.now(),
            nodes=classified,
            edges=edges,
            warnings=warnings,
        )
