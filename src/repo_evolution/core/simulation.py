"""Force-directed 3D layout of a file tree."""

import logging
import math
import random
from typing import Dict, List, Optional, Sequence, Tuple

from repo_evolution.config import SimulationConfig
from repo_evolution.models.node import Edge, Node, NodeKind

logger = logging.getLogger(__name__)

DIRECTORY_RADIUS = 3.0
MIN_RADIUS = 2.0
MAX_RADIUS = 15.0
RADIUS_SCALE = 4.0
SEED_SHELL_MIN = 100.0
SEED_SHELL_WIDTH = 100.0


def node_radius(node: Node) -> float:
    """Visual radius: log-scaled for files, fixed for directories."""
    if node.kind == NodeKind.DIRECTORY:
        return DIRECTORY_RADIUS
    scaled = math.log10(max(node.size, 0) + 1) * RADIUS_SCALE
    return max(MIN_RADIUS, min(MAX_RADIUS, scaled))


def seed_position(node_id: str, seed: int) -> Tuple[float, float, float]:
    """Deterministic point on a thick spherical shell around the origin."""
    rng = random.Random(f"{seed}:{node_id}")
    cos_theta = rng.uniform(-1.0, 1.0)
    sin_theta = math.sqrt(1.0 - cos_theta * cos_theta)
    phi = rng.uniform(0.0, 2.0 * math.pi)
    radius = SEED_SHELL_MIN + rng.random() * SEED_SHELL_WIDTH
    return (
        radius * sin_theta * math.cos(phi),
        radius * sin_theta * math.sin(phi),
        radius * cos_theta,
    )


class ForceSimulation:
    """Spring, repulsion and centering forces integrated one tick at a time.

    The simulation owns the position and velocity of the nodes it is given
    and writes them back onto those Node objects after every tick. Edges whose
    endpoints are not among the nodes are ignored.
    """

    def __init__(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        config: Optional[SimulationConfig] = None,
    ):
        self.config = config or SimulationConfig()
        self.nodes: List[Node] = list(nodes)
        self.edges: List[Edge] = list(edges)
        self.ticks = 0

        index: Dict[str, int] = {node.id: i for i, node in enumerate(self.nodes)}
        self._springs: List[Tuple[int, int]] = [
            (index[e.source], index[e.target])
            for e in self.edges
            if e.source in index and e.target in index and e.source != e.target
        ]
        # Spring strength scales by 1/min(degree); the lower-degree end of each
        # spring takes the larger share of the impulse.
        degree = [0] * len(self.nodes)
        for i, j in self._springs:
            degree[i] += 1
            degree[j] += 1
        self._spring_weights: List[Tuple[float, float]] = [
            (1.0 / min(degree[i], degree[j]), degree[i] / (degree[i] + degree[j]))
            for i, j in self._springs
        ]
        self._radii = [node_radius(node) for node in self.nodes]
        self._rng = random.Random(self.config.seed)

        self._px: List[float] = []
        self._py: List[float] = []
        self._pz: List[float] = []
        self._vx: List[float] = []
        self._vy: List[float] = []
        self._vz: List[float] = []
        seeded = 0
        for node in self.nodes:
            if node.has_position:
                x, y, z = node.position()
                vx, vy, vz = node.velocity()
            else:
                x, y, z = seed_position(node.id, self.config.seed)
                vx = vy = vz = 0.0
                seeded += 1
            self._px.append(x)
            self._py.append(y)
            self._pz.append(z)
            self._vx.append(vx)
            self._vy.append(vy)
            self._vz.append(vz)
        self._sync()

        logger.debug(
            "Simulation with %d nodes (%d seeded), %d springs",
            len(self.nodes),
            seeded,
            len(self._springs),
        )

    def tick(self) -> None:
        """Advance the layout by one step."""
        self._apply_springs()
        self._apply_repulsion()
        self._apply_centering()
        self._integrate()
        self.ticks += 1
        self._sync()

    def _apply_springs(self) -> None:
        strength = self.config.spring_strength
        spacing = self.config.ideal_spacing
        px, py, pz = self._px, self._py, self._pz
        vx, vy, vz = self._vx, self._vy, self._vz
        for (i, j), (weight, bias) in zip(self._springs, self._spring_weights):
            dx = px[j] - px[i]
            dy = py[j] - py[i]
            dz = pz[j] - pz[i]
            distance = math.sqrt(dx * dx + dy * dy + dz * dz) or 1.0
            ideal = self._radii[i] + self._radii[j] + spacing
            force = (distance - ideal) * strength * weight
            fx = dx / distance * force
            fy = dy / distance * force
            fz = dz / distance * force
            vx[i] += fx * (1.0 - bias)
            vy[i] += fy * (1.0 - bias)
            vz[i] += fz * (1.0 - bias)
            vx[j] -= fx * bias
            vy[j] -= fy * bias
            vz[j] -= fz * bias

    def _apply_repulsion(self) -> None:
        # O(n^2); fine for the few hundred nodes a snapshot usually holds
        strength = self.config.repulsion_strength
        if strength == 0:
            return
        px, py, pz = self._px, self._py, self._pz
        vx, vy, vz = self._vx, self._vy, self._vz
        radii = self._radii
        count = len(self.nodes)
        for i in range(count):
            for j in range(i + 1, count):
                dx = px[j] - px[i]
                dy = py[j] - py[i]
                dz = pz[j] - pz[i]
                distance = math.sqrt(dx * dx + dy * dy + dz * dz)
                if distance == 0:
                    # Coincident nodes: push apart along a random axis
                    dx, dy, dz = self._random_unit()
                    distance = 1.0
                reach = radii[i] + radii[j]
                gap = max(distance - reach, 1.0)
                force = strength * reach / (gap * gap)
                fx = dx / distance * force
                fy = dy / distance * force
                fz = dz / distance * force
                vx[i] -= fx
                vy[i] -= fy
                vz[i] -= fz
                vx[j] += fx
                vy[j] += fy
                vz[j] += fz

    def _apply_centering(self) -> None:
        strength = self.config.centering_strength
        for i in range(len(self.nodes)):
            self._vx[i] -= self._px[i] * strength
            self._vy[i] -= self._py[i] * strength
            self._vz[i] -= self._pz[i] * strength

    def _integrate(self) -> None:
        damping = self.config.damping
        limit = self.config.max_velocity
        for i in range(len(self.nodes)):
            vx = self._vx[i] * damping
            vy = self._vy[i] * damping
            vz = self._vz[i] * damping
            speed = math.sqrt(vx * vx + vy * vy + vz * vz)
            if speed > limit:
                scale = limit / speed
                vx *= scale
                vy *= scale
                vz *= scale
            self._vx[i] = vx
            self._vy[i] = vy
            self._vz[i] = vz
            self._px[i] += vx
            self._py[i] += vy
            self._pz[i] += vz

    def _random_unit(self) -> Tuple[float, float, float]:
        cos_theta = self._rng.uniform(-1.0, 1.0)
        sin_theta = math.sqrt(1.0 - cos_theta * cos_theta)
        phi = self._rng.uniform(0.0, 2.0 * math.pi)
        return (sin_theta * math.cos(phi), sin_theta * math.sin(phi), cos_theta)

    def _sync(self) -> None:
        for i, node in enumerate(self.nodes):
            node.x = self._px[i]
            node.y = self._py[i]
            node.z = self._pz[i]
            node.vx = self._vx[i]
            node.vy = self._vy[i]
            node.vz = self._vz[i]

    def current_nodes(self) -> List[Node]:
        """Get the simulated nodes with their latest positions."""
        return self.nodes

    def kinetic_energy(self) -> float:
        return 0.5 * sum(
            vx * vx + vy * vy + vz * vz
            for vx, vy, vz in zip(self._vx, self._vy, self._vz)
        )

    def max_speed(self) -> float:
        if not self.nodes:
            return 0.0
        return max(
            math.sqrt(vx * vx + vy * vy + vz * vz)
            for vx, vy, vz in zip(self._vx, self._vy, self._vz)
        )

    def is_settled(self) -> bool:
        """Check the optional energy-based early exit."""
        threshold = self.config.energy_threshold
        return threshold is not None and self.kinetic_energy() < threshold
