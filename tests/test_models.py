"""Tests for the pydantic data models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from repo_evolution.models import (
    ChangeRecord,
    ChangeStatus,
    FileStatus,
    Node,
    Snapshot,
    TimelineEntry,
)


class TestChangeRecord:
    """Test ChangeRecord validation."""

    def test_delta(self):
        """Test delta is additions minus deletions."""
        record = ChangeRecord(path="a.ts", status="modified", additions=3, deletions=8)
        assert record.status == ChangeStatus.MODIFIED
        assert record.delta == -5

    def test_camel_case_previous_path(self):
        """Test previousPath is accepted as an alias."""
        record = ChangeRecord.model_validate(
            {"path": "b.ts", "status": "renamed", "previousPath": "a.ts"}
        )
        assert record.previous_path == "a.ts"

    def test_blank_previous_path_is_none(self):
        """Test an empty previous path is treated as missing."""
        record = ChangeRecord(path="b.ts", status="renamed", previous_path="")
        assert record.previous_path is None

    @pytest.mark.parametrize("path", ["", "/", "a//b"])
    def test_bad_paths_rejected(self, path):
        """Test empty paths and empty segments are rejected."""
        with pytest.raises(ValidationError):
            ChangeRecord(path=path, status="added")

    def test_unknown_status_rejected(self):
        """Test statuses outside the four kinds are rejected."""
        with pytest.raises(ValidationError):
            ChangeRecord(path="a.ts", status="copied")


def test_timeline_entry_keeps_invalid_records_raw():
    """Test a bad record does not fail the whole entry."""
    entry = TimelineEntry.model_validate(
        {
            "id": "c1",
            "timestamp": "2024-01-01T00:00:00",
            "changes": [
                {"path": "a.ts", "status": "added", "additions": 1},
                {"path": "b.ts", "status": "added", "additions": -1},
            ],
        }
    )
    assert isinstance(entry.changes[0], ChangeRecord)
    assert isinstance(entry.changes[1], dict)


class TestNode:
    """Test Node helpers."""

    def test_unplaced_node(self):
        """Test a fresh node has no position."""
        node = Node(id="a", path="a", name="a")
        assert not node.has_position
        assert node.position() == (0.0, 0.0, 0.0)

    def test_ghost_and_root(self):
        """Test ghost and root detection."""
        assert Node(id="/", path="/", name="root").is_root
        assert Node(id="a", path="a", name="a", file_status=FileStatus.DELETED).is_ghost


def test_snapshot_status_counts():
    """Test snapshot helpers split live and ghost nodes."""
    snapshot = Snapshot(
        id="c1",
        timestamp=datetime(2024, 1, 1),
        nodes=[
            Node(id="a", path="a", name="a", size=4, file_status=FileStatus.ADDED),
            Node(id="b", path="b", name="b", file_status=FileStatus.DELETED),
        ],
    )
    assert snapshot.live_sizes() == {"a": 4}
    assert [n.id for n in snapshot.ghost_nodes] == ["b"]
    assert snapshot.count_status(FileStatus.ADDED) == 1
    assert snapshot.get_node("b") is None
