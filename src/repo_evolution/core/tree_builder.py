"""Build directory tree nodes and parent edges from a flat file list."""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Set, Tuple

from repo_evolution.models.node import ROOT_ID, Edge, EdgeKind, Node, NodeKind

logger = logging.getLogger(__name__)

SEPARATOR = "/"


def parent_path(path: str) -> str:
    """Get the immediate parent of a path, or the root sentinel."""
    if SEPARATOR not in path:
        return ROOT_ID
    return path.rsplit(SEPARATOR, 1)[0]


def base_name(path: str) -> str:
    return path.rsplit(SEPARATOR, 1)[-1]


def _directory_prefixes(path: str) -> List[str]:
    """All proper prefixes of a path, outermost first."""
    parts = path.split(SEPARATOR)
    return [SEPARATOR.join(parts[:i]) for i in range(1, len(parts))]


def _entries(files: Iterable[Mapping[str, Any]]) -> List[Tuple[str, int, NodeKind]]:
    entries = []
    for file in files:
        kind = file.get("kind") or file.get("type") or NodeKind.FILE
        entries.append((file["path"], int(file.get("size", 0)), NodeKind(kind)))
    return entries


def build_nodes(files: Iterable[Mapping[str, Any]]) -> List[Node]:
    """Build file nodes, synthesized directory nodes and the virtual root.

    Each entry needs ``path`` and ``size`` and may carry ``kind``. A directory
    node is created for every proper prefix of every path unless a real entry
    already occupies that path.
    """
    entries = _entries(files)
    nodes: List[Node] = []
    by_path: Dict[str, Node] = {}
    needed_dirs: List[str] = []

    for path, size, kind in entries:
        if path in by_path:
            # Later entries for the same path win
            by_path[path].size = size
            by_path[path].kind = kind
            continue
        node = Node(id=path, path=path, name=base_name(path), size=size, kind=kind)
        nodes.append(node)
        by_path[path] = node
        needed_dirs.extend(_directory_prefixes(path))

    for dir_path in needed_dirs:
        if dir_path not in by_path:
            node = Node(
                id=dir_path,
                path=dir_path,
                name=base_name(dir_path),
                size=0,
                kind=NodeKind.DIRECTORY,
            )
            nodes.append(node)
            by_path[dir_path] = node

    if entries:
        nodes.append(
            Node(id=ROOT_ID, path=ROOT_ID, name="root", size=0, kind=NodeKind.DIRECTORY)
        )

    logger.debug(
        "Built %d nodes from %d files (%d directories)",
        len(nodes),
        len(entries),
        sum(1 for n in nodes if n.kind == NodeKind.DIRECTORY),
    )
    return nodes


def build_edges(files: Iterable[Mapping[str, Any]]) -> List[Edge]:
    """Build parent edges connecting every path to its immediate parent.

    Directory chains are walked for every path, so shared ancestors produce
    repeated (parent, child) pairs; those are suppressed through a key set.
    """
    edges: List[Edge] = []
    seen: Set[Tuple[str, str]] = set()
    suppressed = 0

    for path, _size, _kind in _entries(files):
        chain = _directory_prefixes(path) + [path]
        for child in chain:
            key = (parent_path(child), child)
            if key in seen:
                suppressed += 1
                continue
            seen.add(key)
            edges.append(Edge(source=key[0], target=child, kind=EdgeKind.PARENT))

    root_edges = sum(1 for e in edges if e.source == ROOT_ID)
    logger.debug(
        "Built %d edges (%d from root), suppressed %d duplicates",
        len(edges),
        root_edges,
        suppressed,
    )
    return edges


def find_orphans(nodes: Iterable[Node], edges: Iterable[Edge]) -> List[str]:
    """Get ids of non-root nodes that no edge points at."""
    targets = {edge.target for edge in edges}
    return [
        node.id for node in nodes if node.id != ROOT_ID and node.id not in targets
    ]


def find_duplicate_paths(files: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    """Count input paths listed more than once.

    build_nodes keeps the last entry for such a path and build_edges emits its
    parent edge only once, so the repeats are otherwise invisible.
    """
    counts: Dict[str, int] = {}
    for path, _size, _kind in _entries(files):
        counts[path] = counts.get(path, 0) + 1
    return {path: count for path, count in counts.items() if count > 1}
