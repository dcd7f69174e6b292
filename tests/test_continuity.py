"""Tests for cross-snapshot layout continuity."""

import math
from datetime import datetime

import pytest

from repo_evolution.config import LayoutSettings, SimulationConfig
from repo_evolution.core.continuity import (
    ContinuityOrchestrator,
    PositionStore,
    frame_stride,
)
from repo_evolution.core.snapshot import SnapshotAssembler
from repo_evolution.models.node import Node


def make_snapshot(snapshot_id, sizes, previous=None, renames=None):
    files = [{"path": path, "size": size} for path, size in sizes.items()]
    return SnapshotAssembler().assemble(
        snapshot_id,
        files,
        previous=previous,
        renames=renames,
        timestamp=datetime(2024, 1, 1),
    )


@pytest.fixture
def settings():
    """Small budgets keep the tests fast."""
    return LayoutSettings(
        structural_budget=60,
        refine_budget=20,
        full_rate_until=10,
        half_rate_until=30,
    )


class TestPositionStore:
    """Test the id-keyed position store."""

    def test_replace_and_restore(self):
        """Test stored state is copied back onto a fresh node."""
        store = PositionStore()
        placed = Node(id="a", path="a", name="a", x=1.0, y=2.0, z=3.0, vx=0.5, vy=0.0, vz=-0.5)
        store.replace([placed, Node(id="unplaced", path="unplaced", name="unplaced")])

        assert "a" in store
        assert "unplaced" not in store
        fresh = Node(id="a", path="a", name="a")
        assert store.restore(fresh)
        assert fresh.position() == (1.0, 2.0, 3.0)
        assert fresh.velocity() == (0.5, 0.0, -0.5)
        assert not store.restore(Node(id="b", path="b", name="b"))

    def test_replace_drops_old_ids(self):
        """Test only the latest nodes are kept."""
        store = PositionStore()
        store.replace([Node(id="a", path="a", name="a", x=0.0, y=0.0, z=0.0)])
        store.replace([Node(id="b", path="b", name="b", x=0.0, y=0.0, z=0.0)])
        assert "a" not in store
        assert len(store) == 1


def test_frame_stride_phases():
    """Test frames are published every tick, then every 2nd, then every 3rd."""
    assert [frame_stride(i, 150, 300) for i in (0, 149, 150, 299, 300, 499)] == [
        1,
        1,
        2,
        2,
        3,
        3,
    ]


class TestAdvance:
    """Test ContinuityOrchestrator.advance."""

    def test_first_snapshot_uses_structural_budget(self, settings):
        """Test an empty store triggers the large budget."""
        orchestrator = ContinuityOrchestrator(settings)
        snapshot = make_snapshot("c1", {"src/a.ts": 10})
        layout = orchestrator.prepare(snapshot)
        assert layout.budget == settings.structural_budget

    def test_positions_populated_and_persisted(self, settings):
        """Test every node is positioned and stored after advance."""
        orchestrator = ContinuityOrchestrator(settings)
        snapshot = make_snapshot("c1", {"src/a.ts": 10, "b.md": 4})

        result = orchestrator.advance(snapshot)

        assert result is snapshot
        assert all(node.has_position for node in snapshot.nodes)
        assert len(orchestrator.store) == len(snapshot.nodes)
        assert not orchestrator.in_flight

    def test_unchanged_structure_uses_refine_budget(self, settings):
        """Test a snapshot with only known ids gets the small budget."""
        orchestrator = ContinuityOrchestrator(settings)
        first = make_snapshot("c1", {"src/a.ts": 10})
        orchestrator.advance(first)
        second = make_snapshot("c2", {"src/a.ts": 20}, previous=first.live_sizes())

        layout = orchestrator.prepare(second)
        assert layout.budget == settings.refine_budget

    def test_new_node_uses_structural_budget(self, settings):
        """Test a new id triggers the large budget."""
        orchestrator = ContinuityOrchestrator(settings)
        first = make_snapshot("c1", {"src/a.ts": 10})
        orchestrator.advance(first)
        second = make_snapshot(
            "c2", {"src/a.ts": 10, "src/b.ts": 5}, previous=first.live_sizes()
        )
        assert orchestrator.prepare(second).budget == settings.structural_budget

    def test_no_teleporting(self, settings):
        """Test carried nodes move at most max_velocity per tick run."""
        orchestrator = ContinuityOrchestrator(settings)
        first = make_snapshot("c1", {"src/a.ts": 10, "src/b.ts": 30})
        orchestrator.advance(first)
        before = {n.id: n.position() for n in first.nodes}

        second = make_snapshot(
            "c2", {"src/a.ts": 12, "src/b.ts": 30}, previous=first.live_sizes()
        )
        orchestrator.advance(second)

        limit = settings.simulation.max_velocity * settings.refine_budget
        for node in second.nodes:
            assert math.dist(before[node.id], node.position()) <= limit + 1e-9

    def test_continuation_starts_from_previous_position(self, settings):
        """Test a carried node starts where the last snapshot left it."""
        orchestrator = ContinuityOrchestrator(settings)
        first = make_snapshot("c1", {"a.ts": 10})
        orchestrator.advance(first)
        final = first.get_node("a.ts").position()

        second = make_snapshot("c2", {"a.ts": 10}, previous=first.live_sizes())
        layout = orchestrator.prepare(second)
        assert second.get_node("a.ts").position() == final
        assert layout.iterations == 0

    def test_ghosts_frozen_at_last_position(self, settings):
        """Test deleted nodes keep their position and skip the simulation."""
        orchestrator = ContinuityOrchestrator(settings)
        first = make_snapshot("c1", {"keep.ts": 10, "gone.ts": 40})
        orchestrator.advance(first)
        last = first.get_node("gone.ts").position()

        second = make_snapshot("c2", {"keep.ts": 10}, previous=first.live_sizes())
        layout = orchestrator.prepare(second)
        ghost = second.ghost_nodes[0]

        assert ghost.id == "gone.ts"
        assert ghost not in layout.simulation.current_nodes()
        assert ghost in layout.frozen

        orchestrator.advance(second)
        assert ghost.position() == last

    def test_frames_follow_schedule(self, settings):
        """Test on_frame sees frames on the stride schedule plus the last one."""
        seen = []
        orchestrator = ContinuityOrchestrator(
            settings, on_frame=lambda nodes, iteration: seen.append(iteration)
        )
        orchestrator.advance(make_snapshot("c1", {"a.ts": 10}))

        expected = [i for i in range(1, 61) if i % frame_stride(i, 10, 30) == 0]
        if expected[-1] != 60:
            expected.append(60)
        assert seen == expected

    def test_frames_include_frozen_nodes(self, settings):
        """Test published frames carry both simulated and ghost nodes."""
        frames = []
        orchestrator = ContinuityOrchestrator(settings)
        first = make_snapshot("c1", {"keep.ts": 10, "gone.ts": 40})
        orchestrator.advance(first)

        orchestrator.on_frame = lambda nodes, iteration: frames.append({n.id for n in nodes})
        second = make_snapshot("c2", {"keep.ts": 10}, previous=first.live_sizes())
        orchestrator.advance(second)
        assert frames
        assert all("gone.ts" in ids for ids in frames)

    def test_energy_early_exit(self):
        """Test an energy threshold can end the pass before the budget."""
        settings = LayoutSettings(
            structural_budget=5000,
            simulation=SimulationConfig(energy_threshold=1e-2),
        )
        seen = []
        orchestrator = ContinuityOrchestrator(
            settings, on_frame=lambda nodes, iteration: seen.append(iteration)
        )
        orchestrator.advance(make_snapshot("c1", {"a.ts": 10, "b/c.ts": 5}))
        assert seen[-1] < 5000


class TestCancellation:
    """Test cooperative cancellation and re-entrant advance."""

    def test_cancel_stops_at_tick_boundary(self, settings):
        """Test cancelling from a frame callback ends the pass early."""
        orchestrator = ContinuityOrchestrator(settings)
        seen = []

        def on_frame(nodes, iteration):
            seen.append(iteration)
            if iteration == 5:
                orchestrator.cancel()

        orchestrator.on_frame = on_frame
        snapshot = make_snapshot("c1", {"a.ts": 10})
        orchestrator.advance(snapshot)

        assert seen == [1, 2, 3, 4, 5]
        assert len(orchestrator.store) == len(snapshot.nodes)
        assert not orchestrator.in_flight

    def test_reentrant_advance_is_serialized(self, settings):
        """Test advancing from inside a frame cancels and persists the old pass."""
        orchestrator = ContinuityOrchestrator(settings)
        first = make_snapshot("c1", {"a.ts": 10})
        second = make_snapshot("c2", {"a.ts": 10}, previous=first.live_sizes())
        first_frames = []
        started_from = {}

        def on_frame(nodes, iteration):
            first_frames.append(iteration)
            if iteration == 3:
                orchestrator.on_frame = None
                started_from["a.ts"] = first.get_node("a.ts").position()
                orchestrator.advance(second)

        orchestrator.on_frame = on_frame
        orchestrator.advance(first)

        assert first_frames == [1, 2, 3]
        assert not orchestrator.in_flight
        # Second pass continued from where the first was interrupted
        assert "a.ts" in orchestrator.store
        assert second.get_node("a.ts").has_position
        limit = settings.simulation.max_velocity * settings.refine_budget
        moved = math.dist(started_from["a.ts"], second.get_node("a.ts").position())
        assert moved <= limit + 1e-9
        # The interrupted pass did not overwrite the newer positions
        assert orchestrator.store.get("a.ts")[:3] == second.get_node("a.ts").position()

    def test_reset_clears_store(self, settings):
        """Test a new timeline starts without carried positions."""
        orchestrator = ContinuityOrchestrator(settings)
        orchestrator.advance(make_snapshot("c1", {"a.ts": 10}))
        orchestrator.reset()
        assert len(orchestrator.store) == 0
