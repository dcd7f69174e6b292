"""Carry layout state across snapshots and schedule simulation work."""

import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from repo_evolution.config import LayoutSettings
from repo_evolution.core.simulation import ForceSimulation
from repo_evolution.models.node import Node
from repo_evolution.models.snapshot import Snapshot

logger = logging.getLogger(__name__)

State = Tuple[float, float, float, float, float, float]
FrameCallback = Callable[[List[Node], int], None]


class PositionStore:
    """Last known (x, y, z, vx, vy, vz) per node id for one timeline."""

    def __init__(self):
        self._states: Dict[str, State] = {}

    def get(self, node_id: str) -> Optional[State]:
        return self._states.get(node_id)

    def replace(self, nodes: List[Node]) -> None:
        """Keep exactly the state of the given positioned nodes."""
        self._states = {}
        for node in nodes:
            if node.has_position:
                self._states[node.id] = node.position() + node.velocity()

    def restore(self, node: Node) -> bool:
        """Copy the stored state onto a node; returns False if none is stored."""
        state = self._states.get(node.id)
        if state is None:
            return False
        node.x, node.y, node.z, node.vx, node.vy, node.vz = state
        return True

    def clear(self) -> None:
        self._states.clear()

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._states


def frame_stride(iteration: int, full_rate_until: int, half_rate_until: int) -> int:
    """How many ticks pass between published frames at this iteration."""
    if iteration < full_rate_until:
        return 1
    if iteration < half_rate_until:
        return 2
    return 3


class LayoutPass:
    """One in-flight simulation run for a single snapshot."""

    def __init__(
        self,
        snapshot: Snapshot,
        simulation: ForceSimulation,
        frozen: List[Node],
        budget: int,
    ):
        self.snapshot = snapshot
        self.simulation = simulation
        self.frozen = frozen
        self.budget = budget
        self.cancelled = False
        self.persisted = False

    @property
    def iterations(self) -> int:
        return self.simulation.ticks

    def all_nodes(self) -> List[Node]:
        return self.simulation.current_nodes() + self.frozen


class ContinuityOrchestrator:
    """Runs the layout for successive snapshots of one timeline.

    Node positions flow from one advance() call to the next through the
    PositionStore, keyed by node id. Ghost nodes are never simulated; they
    keep the position their path had when it was last alive.
    """

    def __init__(
        self,
        settings: Optional[LayoutSettings] = None,
        store: Optional[PositionStore] = None,
        on_frame: Optional[FrameCallback] = None,
    ):
        self.settings = settings or LayoutSettings()
        self.store = store if store is not None else PositionStore()
        self.on_frame = on_frame
        self._current: Optional[LayoutPass] = None

    @property
    def in_flight(self) -> bool:
        return self._current is not None

    def prepare(self, snapshot: Snapshot) -> LayoutPass:
        """Restore carried state and build the simulation for a snapshot."""
        active: List[Node] = []
        frozen: List[Node] = []
        has_new_nodes = False

        for node in snapshot.nodes:
            restored = self.store.restore(node)
            if node.is_ghost:
                frozen.append(node)
            else:
                active.append(node)
                if not restored:
                    # Drop any stale coordinates so the simulation seeds it
                    node.x = node.y = node.z = None
                    node.vx = node.vy = node.vz = None
                    has_new_nodes = True

        structural = has_new_nodes or len(self.store) == 0
        budget = (
            self.settings.structural_budget
            if structural
            else self.settings.refine_budget
        )
        simulation = ForceSimulation(active, snapshot.edges, self.settings.simulation)

        logger.debug(
            "Snapshot %s: %d active, %d frozen, budget %d (%s)",
            snapshot.id,
            len(active),
            len(frozen),
            budget,
            "structural" if structural else "refine",
        )
        return LayoutPass(snapshot, simulation, frozen, budget)

    def iter_frames(self, layout: LayoutPass) -> Iterator[Tuple[int, List[Node]]]:
        """Tick until the budget is spent, yielding frames on the schedule.

        Cancellation is checked between ticks only. The final state is always
        yielded last unless the pass was cancelled.
        """
        simulation = layout.simulation
        last_published = -1
        while simulation.ticks < layout.budget and not layout.cancelled:
            simulation.tick()
            iteration = simulation.ticks
            stride = frame_stride(
                iteration,
                self.settings.full_rate_until,
                self.settings.half_rate_until,
            )
            if iteration % stride == 0:
                last_published = iteration
                yield iteration, layout.all_nodes()
            if simulation.is_settled():
                logger.debug("Settled after %d ticks", iteration)
                break
        if not layout.cancelled and last_published != simulation.ticks:
            yield simulation.ticks, layout.all_nodes()

    def advance(self, snapshot: Snapshot) -> Snapshot:
        """Lay out a snapshot, continuing from the previous one's positions.

        Any pass still in flight (e.g. when called from an on_frame callback)
        is cancelled and persisted first. The snapshot's nodes are updated in
        place and the same snapshot is returned.
        """
        self.cancel()
        layout = self.prepare(snapshot)
        self._current = layout
        try:
            for iteration, nodes in self.iter_frames(layout):
                if self.on_frame is not None:
                    self.on_frame(nodes, iteration)
        finally:
            self._finish(layout)
        return snapshot

    def cancel(self) -> None:
        """Stop the in-flight pass at the next tick boundary and keep its state."""
        layout = self._current
        if layout is None:
            return
        logger.debug(
            "Cancelling layout of %s after %d ticks",
            layout.snapshot.id,
            layout.iterations,
        )
        layout.cancelled = True
        self._finish(layout)

    def _finish(self, layout: LayoutPass) -> None:
        if not layout.persisted:
            self.store.replace(layout.all_nodes())
            layout.persisted = True
        if self._current is layout:
            self._current = None

    def reset(self) -> None:
        """Start a new timeline: cancel any pass and forget all positions."""
        self.cancel()
        self.store.clear()
